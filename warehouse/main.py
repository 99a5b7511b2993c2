"""
FastAPI main application for the warehouse inventory tracker.

To run: uvicorn warehouse.main:app --reload
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from warehouse.api.v1 import api_router
from warehouse.core.config import Settings, settings
from warehouse.core.database import Database, create_database
from warehouse.error_handlers import register_exception_handlers
from warehouse.logging_config import get_logger, setup_logging
from warehouse.middleware import (
    RequestLoggingMiddleware,
    build_limiter,
    http_exception_handler,
    rate_limit_exceeded_handler,
)
from warehouse.schemas.dashboard import HealthCheck
from warehouse.services.alerts import AlertEvaluator
from warehouse.services.ledger import LedgerEngine
from warehouse.services.notifier import ConnectionManager
from warehouse.services.queries import InventoryQueries
from warehouse.services.recorder import TransactionRecorder

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    config: Settings = app.state.settings
    db: Database = app.state.db

    # Startup
    logger.info(f"Starting {config.app_name} v{config.app_version}")
    logger.info(f"Environment: {'Development' if config.debug else 'Production'}")

    await db.connect(
        retries=config.db_connect_retries,
        delay=config.db_connect_retry_delay
    )

    # Create tables for development and SQLite; use Alembic migrations in production
    if config.debug or db.is_sqlite:
        logger.info("Initializing database tables...")
        await db.create_all()

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await app.state.notifier.close()
    await db.close()
    logger.info("Application shutdown complete")


def create_app(
    database: Optional[Database] = None,
    app_settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the application and its services.

    Args:
        database: Store handle to use, defaults to one built from settings
        app_settings: Settings to use, defaults to the global settings
    """
    config = app_settings or settings
    setup_logging(
        log_level=config.log_level,
        log_dir=config.log_dir,
        max_bytes=config.log_max_bytes,
        backup_count=config.log_backup_count
    )

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="Warehouse inventory tracker - stock ledger, alerts and live updates",
        docs_url="/docs" if config.debug else None,
        redoc_url="/redoc" if config.debug else None,
        lifespan=lifespan
    )

    # Services
    db = database or create_database()
    notifier = ConnectionManager()
    app.state.settings = config
    app.state.db = db
    app.state.notifier = notifier
    app.state.evaluator = AlertEvaluator()
    app.state.ledger = LedgerEngine(
        db,
        recorder=TransactionRecorder(id_attempts=config.ledger_txn_id_attempts),
        evaluator=app.state.evaluator,
        notifier=notifier,
        max_retries=config.ledger_max_retries
    )
    app.state.queries = InventoryQueries(recent_limit=config.recent_transactions_limit)

    # Rate limiting
    app.state.limiter = build_limiter(config.rate_limit_per_minute, enabled=config.rate_limit_enabled)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Request logging
    app.add_middleware(RequestLoggingMiddleware)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    register_exception_handlers(app)
    app.add_exception_handler(HTTPException, http_exception_handler)

    # Include API routers
    app.include_router(api_router)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "app": config.app_name,
            "version": config.app_version,
            "status": "running",
            "docs": "/docs" if config.debug else "disabled",
            "api_v1": "/api/v1"
        }

    @app.get("/health", response_model=HealthCheck)
    async def health_check(request: Request):
        """Health check endpoint. Public."""
        database_ok = await request.app.state.db.ping()
        return HealthCheck(
            status="healthy" if database_ok else "degraded",
            version=config.app_version,
            database=database_ok,
            subscribers=request.app.state.notifier.subscriber_count,
            timestamp=datetime.now(timezone.utc)
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "warehouse.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
