"""
Security utilities for authentication.
Handles JWT access tokens, password hashing, and resolving the acting user.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from warehouse.core.config import settings
from warehouse.core.database import get_db


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# HTTP Bearer token scheme
security_scheme = HTTPBearer(auto_error=True)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def create_access_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: User ID
        expires_delta: Token lifetime, defaults to the configured one
        additional_claims: Extra data to include in token

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    to_encode = {
        "exp": now + expires_delta,
        "sub": str(subject),
        "type": "access",
        "iat": now
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise _unauthorized("Could not validate credentials")


def user_id_from_token(token: str) -> uuid.UUID:
    """
    Extract the user ID from an access token.

    Raises:
        HTTPException: If the token is invalid, of the wrong type, or has no subject
    """
    payload = decode_token(token)

    if payload.get("type", "access") != "access":
        raise _unauthorized("Invalid token type. Access token required.")

    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise _unauthorized("Invalid authentication credentials")

    try:
        return uuid.UUID(user_id_str)
    except ValueError:
        raise _unauthorized("Invalid user ID in token")


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme)
) -> uuid.UUID:
    """Dependency returning the user ID carried by the bearer token."""
    return user_id_from_token(credentials.credentials)


async def authenticate_user(db: AsyncSession, email: str, password: str):
    """Return the user owning these credentials, or None."""
    # Import here to avoid circular dependency
    from warehouse.models.user import User

    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the current authenticated user from database.

    Raises:
        HTTPException: 401 if the user no longer exists, 403 if inactive
    """
    from warehouse.models.user import User

    user = await db.get(User, user_id)

    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user
