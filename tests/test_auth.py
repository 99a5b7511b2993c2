"""Tests for registration, login and bearer-token authentication."""
import uuid
from datetime import timedelta

import pytest
from fastapi import HTTPException
from freezegun import freeze_time

from warehouse.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    user_id_from_token,
    verify_password,
)
from warehouse.models import User


class TestPasswords:
    """Tests for password hashing."""

    def test_hash_round_trip(self):
        hashed = get_password_hash("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("S3CRET-PASS", hashed)


class TestTokens:
    """Tests for access token handling."""

    def test_subject_round_trip(self):
        user_id = uuid.uuid4()
        assert user_id_from_token(create_access_token(user_id)) == user_id

    def test_expired_token_rejected(self):
        with freeze_time("2026-01-01 12:00:00"):
            token = create_access_token(uuid.uuid4(), expires_delta=timedelta(minutes=5))
            assert decode_token(token)["type"] == "access"

        with freeze_time("2026-01-01 12:06:00"):
            with pytest.raises(HTTPException) as exc_info:
                decode_token(token)
        assert exc_info.value.status_code == 401

    def test_wrong_token_type_rejected(self):
        token = create_access_token(uuid.uuid4(), additional_claims={"type": "refresh"})
        with pytest.raises(HTTPException):
            user_id_from_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(HTTPException):
            user_id_from_token("not-a-jwt")


class TestRegisterAndLogin:
    """Tests for /api/v1/auth."""

    async def test_register_then_login(self, client):
        response = await client.post("/api/v1/auth/register", json={
            "email": "Picker@Example.com",
            "username": "picker",
            "password": "pick-pack-ship",
            "full_name": "Floor Picker"
        })
        assert response.status_code == 201
        assert response.json()["email"] == "picker@example.com"
        assert "password_hash" not in response.json()

        login = await client.post("/api/v1/auth/login", json={
            "email": "picker@example.com", "password": "pick-pack-ship"
        })
        assert login.status_code == 200
        token = login.json()["access_token"]
        assert login.json()["token_type"] == "bearer"

        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["username"] == "picker"

    async def test_duplicate_email(self, client, user):
        response = await client.post("/api/v1/auth/register", json={
            "email": "clerk@example.com", "username": "someone-else", "password": "long-enough"
        })
        assert response.status_code == 409
        assert response.json()["details"]["field"] == "email"

    async def test_short_password(self, client):
        response = await client.post("/api/v1/auth/register", json={
            "email": "a@example.com", "username": "shorty", "password": "short"
        })
        assert response.status_code == 422

    async def test_wrong_password(self, client, user):
        response = await client.post("/api/v1/auth/login", json={
            "email": "clerk@example.com", "password": "wrong-horse"
        })
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_inactive_user(self, client, database, user):
        async with database.session() as session:
            account = await session.get(User, user.id)
            account.is_active = False

        login = await client.post("/api/v1/auth/login", json={
            "email": "clerk@example.com", "password": "correct-horse"
        })
        assert login.status_code == 403

        token = create_access_token(user.id)
        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 403


class TestProtectedRoutes:
    """Every inventory route requires a valid bearer token."""

    @pytest.mark.parametrize("path", [
        "/api/v1/inventory",
        "/api/v1/transactions",
        "/api/v1/alerts",
        "/api/v1/dashboard/stats",
        "/api/v1/categories",
    ])
    async def test_invalid_token(self, client, path):
        response = await client.get(path, headers={"Authorization": "Bearer invalid-token"})
        assert response.status_code == 401

    async def test_token_for_unknown_user(self, client):
        token = create_access_token(uuid.uuid4())
        response = await client.get("/api/v1/inventory", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_health_is_public(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
