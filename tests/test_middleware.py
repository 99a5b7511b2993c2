"""Tests for rate limiting and request logging middleware."""
from httpx import ASGITransport, AsyncClient

from warehouse.core.config import Settings
from warehouse.main import create_app


class TestRateLimiting:
    """Tests for the per-client request limit."""

    async def test_limit_exceeded(self, database, tmp_path):
        app = create_app(database=database, app_settings=Settings(
            LOG_DIR=str(tmp_path / "logs"),
            RATE_LIMIT_ENABLED=True,
            RATE_LIMIT_PER_MINUTE=2
        ))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            responses = [await client.get("/health") for _ in range(3)]

        assert [r.status_code for r in responses] == [200, 200, 429]
        body = responses[-1].json()
        assert body["error"] == "Rate limit exceeded"
        assert body["retry_after"] == 60
        assert "Too many requests" in body["message"]

    async def test_disabled_limiter_lets_everything_through(self, client):
        responses = [await client.get("/health") for _ in range(5)]
        assert {r.status_code for r in responses} == {200}


class TestRequestLogging:
    """Tests for RequestLoggingMiddleware."""

    async def test_process_time_header(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.headers["X-Process-Time"].endswith("ms")
