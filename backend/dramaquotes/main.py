"""
Drama Quotes Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn dramaquotes.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────┐ ┌──────┐ ┌──────────┐ │
    │  │  Req ID  │→│   Logging   │→│ GZip │→│   CORS   │ │
    │  └──────────┘ └─────────────┘ └──────┘ └──────────┘ │
    │                                                     │
    │  Routes:                                            │
    │  /api/auth/*   /api/quotes*   /api/dramas   /health │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ Auth→401 │ Forbidden→403          │
    │  NotFound→404 │ Conflict→409 │ Persistence→500      │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration warnings → optional create_all →
              database connectivity probe (logged, never fatal)
    Shutdown: dispose the engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from dramaquotes import __version__
from dramaquotes.config import settings
from dramaquotes.database import create_tables, dispose_engine
from dramaquotes.exceptions import (
    AuthError,
    ConflictError,
    DramaQuotesError,
    ForbiddenError,
    InvalidReference,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from dramaquotes.middleware.logging import RequestLoggingMiddleware
from dramaquotes.middleware.request_id import RequestIDMiddleware, request_id_var
from dramaquotes.routes import auth, dramas, health, quotes
from dramaquotes.routes.health import check_database

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2024-01-15T12:00:00 [INFO] dramaquotes.services.user_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Drama Quotes Backend %s starting up...", __version__)

    # Unsafe-but-usable settings are surfaced, not fatal
    for warning in settings.configuration_warnings():
        logger.warning("Configuration warning: %s", warning)

    if settings.db_create_tables:
        await create_tables()
        logger.info("Database tables created (or already present)")

    if await check_database():
        logger.info("Database connection OK")
    else:
        # Keep serving: /health reports the outage and requests fail with 500
        logger.error("Database connection failed at startup")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Drama Quotes Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: dict | None = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status codes and the ErrorResponse body.

        ValidationError / body schema errors  → 400
        AuthError (all token + login causes)  → 401 + WWW-Authenticate
        ForbiddenError                        → 403
        NotFoundError                         → 404
        ConflictError, InvalidReference       → 409
        PersistenceError                      → 500 (generic message)
        DramaQuotesError (other)              → 500
        Exception (fallback)                  → 500

    `context` is only ever logged. The one exception is ValidationError,
    whose context names the offending field and goes back to the client.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
        logger.warning("[%s] Request validation failed: %s", rid, fields)
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "validation_error",
                "Request body or parameters are invalid",
                {"fields": fields},
            ),
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        rid = request_id_var.get("")
        # Cause goes to the log; the client only sees the generic message
        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.context)
        return JSONResponse(
            status_code=401,
            content=_error_body("authentication_error", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        rid = request_id_var.get("")
        logger.warning("[%s] Forbidden: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=403, content=_error_body("forbidden", exc.message))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body("not_found", exc.message))

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        rid = request_id_var.get("")
        logger.info("[%s] Conflict: %s", rid, exc.context)
        return JSONResponse(status_code=409, content=_error_body("conflict", exc.message))

    @app.exception_handler(InvalidReference)
    async def handle_invalid_reference(request: Request, exc: InvalidReference):
        rid = request_id_var.get("")
        logger.error("[%s] Invalid reference: %s", rid, exc.context)
        return JSONResponse(status_code=409, content=_error_body("invalid_reference", exc.message))

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        rid = request_id_var.get("")
        logger.error("[%s] Persistence error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "server_error",
                "An internal error occurred. Please try again later.",
            ),
        )

    @app.exception_handler(DramaQuotesError)
    async def handle_app_error(request: Request, exc: DramaQuotesError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
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
        title="K-Drama Quotes API",
        description=(
            "Share quotes from Korean dramas. Register, log in with a bearer token, "
            "and submit quotes attributed to a drama and character."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        # Bearer tokens, not cookies
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(quotes.router)
    app.include_router(dramas.router)
    app.include_router(health.router)

    return app


app = create_app()
