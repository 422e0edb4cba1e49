"""
api/main.py -- FastAPI application entry point for StockPilot.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds everything that depends on configuration -- the stores and
the SessionCodec -- from one Settings instance and hangs it on app.state.
Nothing below the API layer reads configuration on its own.
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

from api.limiter import limiter
from api.models import ErrorDetail, ErrorIssue, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.items import router as items_router
from auth.store import UserStore
from auth.tokens import SessionCodec
from core.config import get_settings
from inventory.store import InventoryStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("stockpilot.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores and build the session codec; close the stores on shutdown."""
    settings = get_settings()
    logger.info("StockPilot API starting up")
    app.state.settings = settings
    app.state.session_codec = SessionCodec(settings.secret_key, settings.session_expire_seconds)
    app.state.user_store = UserStore(settings.database_url)
    app.state.inventory = InventoryStore(settings.database_url)
    logger.info("Stores initialized")

    yield

    app.state.inventory.close()
    app.state.user_store.close()
    logger.info("StockPilot API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="StockPilot API",
    description="Shared inventory tracker with session auth and role-gated item management.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette wraps the app in reverse registration order: the last one added
# sees the request first. Request order is TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    # The session travels in a cookie, so browsers need credentialed CORS.
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# The slowapi decorators and middleware find the limiter here.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
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
app.include_router(items_router, prefix="/api", tags=["Items"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves as {"error": {"code", "message", ...}} whatever raised it.
# ---------------------------------------------------------------------------


def _error_json(status_code: int, error: ErrorDetail) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error).model_dump(mode="json", exclude_none=True),
    )


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error and a Retry-After hint."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_json(
        429,
        ErrorDetail(code="rate_limited", message="Too many requests.", detail=str(exc.detail)),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with one issue per invalid field.

    Only location, message and error type are echoed back. The offending input
    is left out because it may be a password.
    """
    issues = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        if loc and loc[0] in ("body", "path", "query"):
            loc = loc[1:]
        if err.get("type") == "json_invalid":
            # The rest of the loc is a character offset, not a field.
            loc = []
        issues.append(ErrorIssue(path=loc, message=str(err.get("msg", "")), type=str(err.get("type", ""))))
    return _error_json(
        400,
        ErrorDetail(code="validation_error", message="Request validation failed.", issues=issues),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap HTTPException (ours and the framework's) in the error envelope.

    Route handlers raise HTTPException with a {"code", "message"} dict as
    detail; use it directly as the error field. Framework-raised exceptions
    (unknown route, wrong method) carry a plain string.
    """
    if isinstance(exc.detail, dict):
        response = JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    else:
        response = _error_json(exc.status_code, ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail)))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer 500 for anything no other handler claimed.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_json(500, ErrorDetail(code="internal_error", message="An unexpected error occurred."))


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is always reachable regardless of router
# registration state. No auth and no rate limit.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
