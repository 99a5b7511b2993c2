"""
Authentication API endpoints for user registration and login.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from warehouse.core.database import get_db
from warehouse.core.security import (
    authenticate_user,
    create_access_token,
    get_current_user,
    get_password_hash,
)
from warehouse.error_handlers import DuplicateKeyError
from warehouse.logging_config import get_logger
from warehouse.models.user import User
from warehouse.schemas.user import (
    UserCreate,
    UserResponse,
    LoginRequest,
    LoginResponse,
)

logger = get_logger("api.auth")

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user account.

    - **email**: Valid email address
    - **username**: Unique handle, 3 to 100 characters
    - **password**: Minimum 8 characters
    - **full_name**: Optional user's full name
    """
    email = user_data.email.lower()

    # Check if user already exists
    result = await db.execute(
        select(User).where(
            or_(User.email == email, User.username == user_data.username)
        )
    )
    existing_user = result.scalars().first()

    if existing_user:
        if existing_user.email == email:
            raise DuplicateKeyError("User", "email", email)
        raise DuplicateKeyError("User", "username", user_data.username)

    # Create new user
    new_user = User(
        email=email,
        username=user_data.username,
        password_hash=get_password_hash(user_data.password),
        full_name=user_data.full_name,
        role="user",
        is_active=True
    )

    db.add(new_user)
    await db.commit()
    logger.info(f"Registered user {new_user.username} ({new_user.id})")

    return new_user


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate user and return a bearer token.

    - **email**: User's email address
    - **password**: User's password
    """
    user = await authenticate_user(db, credentials.email, credentials.password)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return LoginResponse(
        access_token=create_access_token(subject=user.id),
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return current_user
