"""Core application modules."""
from warehouse.core.config import settings, get_settings
from warehouse.core.database import Base, Database, create_database, get_database, get_db
from warehouse.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    authenticate_user,
    get_current_user,
    get_current_user_id,
)

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "Database",
    "create_database",
    "get_database",
    "get_db",
    "get_password_hash",
    "verify_password",
    "create_access_token",
    "authenticate_user",
    "get_current_user",
    "get_current_user_id",
]
