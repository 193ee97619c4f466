"""
api/main.py -- FastAPI application entry point for SecDash.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan handles startup (store construction, optional demo seed) and
shutdown (close stores) symmetrically. Stores are built here and hung on
app.state -- there are no module-level store singletons, so tests can wire
isolated instances by replacing the lifespan.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.errors import error_response
from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.audit import router as audit_router
from api.routes.auth import router as auth_router
from api.routes.dashboard import router as dashboard_router
from api.seed import seed_demo_data
from audit.store import AuditStore, InMemoryAuditStore, SqlAuditStore
from auth.store import InMemoryUserStore, SqlUserStore, UserStore
from core.config import Settings, get_settings
from core.errors import AppError, InternalError, ValidationError

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("secdash.api")

# ---------------------------------------------------------------------------
# Store construction
# ---------------------------------------------------------------------------


def build_stores(settings: Settings) -> tuple[UserStore, AuditStore]:
    """Construct the credential and audit stores selected by DATABASE_URL.

    Empty DATABASE_URL -> in-memory stores (state lives for the process).
    Any other value    -> SQLAlchemy-backed stores sharing that database.
    """
    if settings.database_url:
        return SqlUserStore(settings.database_url), SqlAuditStore(settings.database_url)
    return InMemoryUserStore(), InMemoryAuditStore()


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    settings = get_settings()
    logger.info("SecDash API starting up")
    app.state.user_store, app.state.audit_store = build_stores(settings)
    logger.info("Stores initialized (%s)", "sql" if settings.database_url else "in-memory")
    if settings.seed_demo_data:
        seed_demo_data(app.state.user_store, app.state.audit_store)

    yield

    app.state.user_store.close()
    app.state.audit_store.close()
    logger.info("SecDash API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

_settings = get_settings()

app = FastAPI(
    title="SecDash API",
    description="Security-monitoring dashboard: authentication, activity logs, security events.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time is captured around call_next so latency is
# reported on every response.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])
app.include_router(audit_router, prefix="/api", tags=["Audit"])
app.include_router(admin_router, prefix="/api", tags=["Admin"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render the application error taxonomy (400/401/403/404/409/500)."""
    return error_response(exc)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After tells clients exactly how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc.detail),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed body or query parameters are a ValidationError (400)."""
    return error_response(ValidationError(detail=str(exc.errors())))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for framework HTTP exceptions (404 route, 405 method)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    Security note: the raw exception is written to the server log only, never
    to the response body. The client receives only a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_response(InternalError())


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No auth, no rate limit.
# ---------------------------------------------------------------------------


@app.get("/api/health", include_in_schema=True, tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
