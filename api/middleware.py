"""
API Middleware

CORS, request logging, error mapping and slowapi rate limiting for the
search API.
"""

import time
import logging
from typing import Callable, Optional, List
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from spyglass.core.config import settings

logger = logging.getLogger(__name__)


# Per-client limit, applied by endpoints that opt in
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])


def setup_cors(app: FastAPI, allowed_origins: Optional[List[str]] = None):
    """
    Setup CORS middleware.

    Args:
        app: FastAPI application instance
        allowed_origins: List of allowed origins. If None, allows all origins.
    """
    origins = allowed_origins or ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info(f"CORS middleware configured with origins: {origins}")


def setup_rate_limiting(app: FastAPI):
    """
    Register the slowapi limiter and its 429 handler.

    Endpoints opt in with @limiter.limit(...).
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    logger.info(f"Rate limiting middleware configured ({settings.rate_limit})")


async def request_logging_middleware(request: Request, call_next: Callable):
    """Log each request with its status and time to first byte."""
    started = time.perf_counter()
    client_ip = request.client.host if request.client else "unknown"
    route = f"{request.method} {request.url.path}"

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"[HTTP] {route} from {client_ip} failed after {time.perf_counter() - started:.3f}s: {e}")
        raise

    elapsed = time.perf_counter() - started
    # Streamed search responses are timed to the response head
    response.headers["X-Response-Time"] = f"{elapsed:.3f}"
    logger.info(f"[HTTP] {route} from {client_ip} -> {response.status_code} ({elapsed:.3f}s)")
    return response


async def error_handling_middleware(request: Request, call_next: Callable):
    """Map ValueError to 400 and anything else unhandled to 500."""
    try:
        return await call_next(request)
    except RateLimitExceeded:
        raise
    except ValueError as e:
        logger.warning(f"[HTTP] Rejected {request.url.path}: {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "error": "Bad Request", "message": str(e)}
        )
    except Exception as e:
        logger.error(f"[HTTP] Unhandled error on {request.url.path}: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "error": "Internal Server Error", "message": "Search backend error"}
        )


def setup_middleware(
    app: FastAPI,
    enable_cors: bool = True,
    allowed_origins: Optional[List[str]] = None,
    enable_rate_limiting: bool = True,
    enable_logging: bool = True,
    enable_error_handling: bool = True
):
    """Install error handling, request logging, CORS and rate limiting."""
    # Innermost, so logged statuses are the mapped ones
    if enable_error_handling:
        app.middleware("http")(error_handling_middleware)

    if enable_logging:
        app.middleware("http")(request_logging_middleware)

    if enable_cors:
        setup_cors(app, allowed_origins)

    if enable_rate_limiting:
        setup_rate_limiting(app)

    logger.info("[HTTP] Middleware configured")


__all__ = [
    "setup_middleware",
    "setup_cors",
    "setup_rate_limiting",
    "limiter",
    "request_logging_middleware",
    "error_handling_middleware",
]
