"""Middleware for rate limiting and request logging, plus their error handlers."""

import time
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from warehouse.logging_config import get_logger

logger = get_logger("middleware")


def build_limiter(per_minute: int, enabled: bool = True) -> Limiter:
    """Rate limiter keyed on client address, applied to every route."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{per_minute}/minute"],
        enabled=enabled
    )


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests with timing and status"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        logger.debug(f"[REQUEST] {request.method} {request.url.path} - Client: {_client(request)}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"[ERROR] {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - Error: {str(e)}",
                exc_info=True
            )
            raise

        process_time = (time.perf_counter() - start_time) * 1000  # ms
        logger.info(
            f"[RESPONSE] {request.method} {request.url.path} - "
            f"Status: {response.status_code} - Duration: {process_time:.2f}ms"
        )
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        return response


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Custom handler for rate limit errors.

    Must stay a plain function: SlowAPIMiddleware replaces coroutine handlers
    with its own default.
    """
    logger.warning(f"[RATE_LIMIT] Client {_client(request)} exceeded rate limit on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "message": "Too many requests. Please slow down and try again later.",
            "retry_after": 60
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """HTTP exception handler with logging"""
    logger.warning(
        f"[HTTP_ERROR] {request.method} {request.url.path} - "
        f"Status: {exc.status_code} - Detail: {exc.detail}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail if isinstance(exc.detail, str) else "HTTP error",
            "status_code": exc.status_code,
            "path": str(request.url.path)
        },
        headers=getattr(exc, "headers", None)
    )
