"""
Voyage Backend - FastAPI Application Factory
=============================================

What:  Builds the FastAPI application of one service (or of all of them).
How:   create_app(service) registers the shared middleware and exception
       handlers, then mounts the routers of the requested service.
Who:   uvicorn (`uvicorn voyage.main:app`, service picked by SERVICE) and
       `python -m voyage <service>`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                     FastAPI App (per service)                │
    │                                                              │
    │  Middleware Chain:                                           │
    │  Request ID → Security Headers → Rate Limit → Logging        │
    │             → GZip → CORS                                    │
    │                                                              │
    │  Routes (SERVICE_ROUTERS[service]) + GET /health             │
    │                                                              │
    │  Exception Handlers:                                         │
    │  VoyageError → its status │ request schema → 400 │ else 500  │
    │  uncaught → 500 envelope built in RequestIDMiddleware        │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, optional create_all
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from voyage import __version__
from voyage.config import SERVICE_PORTS, settings
from voyage.database import create_all_tables, dispose_engine
from voyage.exceptions import (
    GENERIC_SERVER_ERROR,
    AuthenticationError,
    CircuitBreakerOpenError,
    DatabaseError,
    RateLimitExceededError,
    VoyageError,
)
from voyage.middleware.logging import RequestLoggingMiddleware
from voyage.middleware.rate_limit import RateLimitMiddleware
from voyage.middleware.request_id import RequestIDMiddleware, request_id_var
from voyage.middleware.security_headers import SecurityHeadersMiddleware
from voyage.routes import auth, catalog, health, travel, trips, users

logger = logging.getLogger(__name__)

# Routers mounted by each service; "all" mounts every one of them
SERVICE_ROUTERS: Dict[str, List[APIRouter]] = {
    "user": [auth.router, users.router],
    "travel": [travel.router],
    "sleep": [catalog.sleep_router],
    "enjoy": [catalog.enjoy_router],
    "eat": [catalog.eat_router],
    "drink": [catalog.drink_router],
    "trip": [trips.router],
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configures the root logger once for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout, which
    the container runtime collects.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # RequestLoggingMiddleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    service = app.state.service
    logger.info("=" * 60)
    logger.info("Voyage %s service starting up (v%s)...", service, __version__)

    # A weak configuration is reported, not fatal: /health stays reachable
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.warning("%s", str(e))

    if settings.db_create_all:
        await create_all_tables()
        logger.info("Database tables created (DB_CREATE_ALL)")

    port = settings.port_for(service)
    logger.info("Service ready at http://%s:%d (docs at /docs)", settings.backend_host, port)
    logger.info("=" * 60)

    yield

    logger.info("Voyage %s service shutting down...", service)
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details=None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps exceptions to the JSON error envelope.

    Handler hierarchy:
        RequestValidationError   → 400 (field-level details)
        RateLimitExceededError   → 429 + Retry-After
        CircuitBreakerOpenError  → 503 + Retry-After
        DatabaseError            → 500, generic message
        VoyageError (any other)  → exc.status_code
        HTTPException            → its status (unknown route, wrong method)
        Exception                → 500, generic message, stack trace logged

    Internal details (SQL, stack traces, provider URLs) are logged, never
    returned.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        logger.info("[%s] Request validation failed: %s", request_id_var.get(""), details)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", "Request validation failed", details),
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message, exc.context),
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(VoyageError)
    async def handle_voyage_error(request: Request, exc: VoyageError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {}
        if isinstance(exc, AuthenticationError):
            headers["WWW-Authenticate"] = "Bearer"
        message = exc.message if exc.status_code != 500 else GENERIC_SERVER_ERROR
        details = exc.context if exc.status_code != 500 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, message, details),
            headers=headers or None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        error = "not_found" if exc.status_code == 404 else "http_error"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(error, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("internal_server_error", GENERIC_SERVER_ERROR),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(service: str = "all") -> FastAPI:
    """
    Assembles the application of one service.

    Args:
        service: a key of SERVICE_ROUTERS, or "all" for every router in one app

    Raises:
        ValueError: unknown service name
    """
    if service != "all" and service not in SERVICE_ROUTERS:
        raise ValueError(f"Unknown service '{service}'. Expected 'all' or one of {sorted(SERVICE_PORTS)}")

    app = FastAPI(
        title=f"Voyage {service} service" if service != "all" else "Voyage API",
        description="Travel planning: accounts, trips, transport, lodging, restaurants, bars and events.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.service = service

    # ── Register Middleware ───────────────────────────────────────────────
    # Executed in reverse order of addition: the last added runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Authorization", "X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    if service == "all":
        routers = [router for group in SERVICE_ROUTERS.values() for router in group]
    else:
        routers = SERVICE_ROUTERS[service]
    for router in routers:
        app.include_router(router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `voyage.main:app` to be importable
app = create_app(settings.service)
