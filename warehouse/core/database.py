"""
Async database setup with SQLAlchemy 2.0.
Provides the store handle, session management, and base model.
"""
import asyncio
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import MetaData, DateTime, event, func, text, make_url
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import NullPool

from warehouse.core.config import settings
from warehouse.logging_config import get_logger

logger = get_logger("database")


# Naming convention for constraints
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""
    metadata = metadata

    # Common columns for all tables
    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False
    )


class Database:
    """
    Owned handle to the persistent store.

    Created once at application startup, opened with :meth:`connect` and
    released with :meth:`close`. Sessions are handed out by :meth:`session`.
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 40
    ):
        self.url = url
        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def open(self) -> AsyncEngine:
        """Create the engine and session factory if not created yet."""
        if self.engine is not None:
            return self.engine

        if self.is_sqlite:
            database_path = make_url(self.url).database
            if database_path and database_path != ":memory:":
                Path(database_path).parent.mkdir(parents=True, exist_ok=True)

            # SQLite doesn't support connection pooling
            self.engine = create_async_engine(
                self.url,
                echo=self.echo,
                poolclass=NullPool,
                connect_args={"check_same_thread": False}
            )

            @event.listens_for(self.engine.sync_engine, "connect")
            def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
        else:
            self.engine = create_async_engine(
                self.url,
                echo=self.echo,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=3600,   # Recycle connections after 1 hour
            )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )
        return self.engine

    async def connect(self, retries: int = 1, delay: float = 0.0) -> None:
        """
        Open the store and verify it answers, retrying with a fixed delay.

        Args:
            retries: Number of attempts before giving up
            delay: Seconds to wait between attempts

        Raises:
            OperationalError: If the store is still unreachable after all attempts
        """
        engine = self.open()
        attempt = 0
        while True:
            attempt += 1
            try:
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                logger.info(f"Connected to database (attempt {attempt})")
                return
            except (OperationalError, DBAPIError, OSError) as exc:
                if attempt >= retries:
                    logger.error(f"Database unreachable after {attempt} attempts: {exc}")
                    raise
                logger.warning(
                    f"Database connection failed (attempt {attempt}/{retries}), "
                    f"retrying in {delay}s: {exc}"
                )
                await asyncio.sleep(delay)

    async def create_all(self) -> None:
        """Create database tables. Use Alembic in production."""
        engine = self.open()
        async with engine.begin() as conn:
            # Import all models to ensure they're registered
            from warehouse import models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of pooled connections."""
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database connections closed")
        self.engine = None
        self.session_factory = None

    async def ping(self) -> bool:
        """Health check for database connection."""
        try:
            async with self.open().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, DBAPIError, OSError):
            return False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions.

        Usage:
            async with db.session() as session:
                result = await session.execute(select(InventoryItem))
                items = result.scalars().all()
        """
        self.open()
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


def create_database() -> Database:
    """Build the store handle from settings."""
    return Database(
        settings.database_url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow
    )


def get_database(request: Request) -> Database:
    """Dependency returning the store handle owned by the running app."""
    return request.app.state.db


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI endpoints.
    Provides a database session and ensures proper cleanup.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(InventoryItem))
            return result.scalars().all()
    """
    async with get_database(request).session() as session:
        yield session
