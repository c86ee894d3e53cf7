"""
FittedIn Backend — FastAPI Application Factory
===============================================

What:  Builds the FastAPI application: logging, middleware, exception
       handlers and routers.
How:   `create_app()` assembles a fresh instance; the module-level `app` is
       what uvicorn serves (`uvicorn fittedin.main:app`).

Lifecycle:
    Startup:
    1. Configure logging
    2. Warn about insecure production settings
    3. Create missing tables (DB_CREATE_TABLES)
    Shutdown:
    1. Dispose the database engine

Error responses:
    Every FittedInError is rendered as
        {"error": <code>, "message": <text>, "details"?: {...}, "request_id": <id>}
    `details` is only included for errors the client can act on.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional, Tuple, Type

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from fittedin import __version__
from fittedin.config import settings
from fittedin.database import dispose_engine, init_models
from fittedin.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    FittedInError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from fittedin.middleware.logging import RequestLoggingMiddleware
from fittedin.middleware.rate_limit import RateLimitMiddleware
from fittedin.middleware.request_id import RequestIDMiddleware, request_id_var
from fittedin.routes import (
    activities,
    auth,
    connections,
    goals,
    health,
    notifications,
    posts,
    profiles,
    users,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configure the root logger once for the whole process."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request/per-statement chatter
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("FittedIn Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Still serve, so the problem is visible through /health and the logs
        logger.error("Configuration error: %s", str(e))

    if settings.db_create_tables:
        await init_models()
        logger.info("Database schema ensured")

    policy = settings.connection_policy()
    logger.info(
        "Connection policy: auto_accept=%s retry_after_reject=%s recent_signups_seeded=%s",
        policy.auto_accept_enabled,
        policy.allow_retry_after_reject,
        policy.treat_recent_signups_as_seeded,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("FittedIn Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# exception type → (status code, error code, expose details to the client)
ERROR_MAP: Dict[Type[FittedInError], Tuple[int, str, bool]] = {
    ValidationError: (400, "validation_error", True),
    InvalidOperationError: (400, "invalid_operation", True),
    AuthenticationError: (401, "unauthorized", False),
    ForbiddenError: (403, "forbidden", False),
    NotFoundError: (404, "not_found", False),
    ConflictError: (409, "conflict", True),
    RateLimitExceededError: (429, "rate_limit_exceeded", True),
    DatabaseError: (500, "server_error", False),
}


def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message}
    if details:
        body["details"] = details
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map FittedInError subclasses to status codes via ERROR_MAP.

    Internal details (SQL, stack traces) are logged, never returned.
    """

    @app.exception_handler(FittedInError)
    async def handle_fittedin_error(request: Request, exc: FittedInError):
        status, error, expose = next(
            (entry for cls, entry in ERROR_MAP.items() if isinstance(exc, cls)),
            (500, "server_error", False),
        )
        rid = request_id_var.get("")
        headers = {}

        if status >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            message = "An internal error occurred. Please try again later."
        else:
            logger.info("[%s] %s on %s: %s", rid, type(exc).__name__, request.url.path, exc.message)
            message = exc.message

        if isinstance(exc, AuthenticationError):
            headers["WWW-Authenticate"] = "Bearer"
        elif isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(
            status_code=status,
            content=_error_body(error, message, exc.context if expose else None),
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="FittedIn API",
        description="Social fitness network: profiles, goals, posts, connections and notifications.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(profiles.router)
    app.include_router(connections.router)
    app.include_router(notifications.router)
    app.include_router(goals.router)
    app.include_router(posts.router)
    app.include_router(activities.router)
    app.include_router(health.router)

    return app


app = create_app()
