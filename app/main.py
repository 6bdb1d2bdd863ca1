"""FastAPI application entrypoint."""

import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import openkj_router, rate_limited, v1_router
from app.core.config import get_settings
from app.core.database import init_db
from app.core.errors import AppError, InternalError, RateLimitError, ValidationError
from app.core.logging import correlation_id, setup_logging
from app.core.redis import close_redis

logger = logging.getLogger(__name__)

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_json)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist
    await init_db()
    yield
    await close_redis()


app = FastAPI(
    title="Singr",
    version="0.1.0",
    description="Multi-tenant karaoke song request API",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Correlation id ───────────────────────────────────────────
@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    cid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.correlation_id = cid
    token = correlation_id.set(cid)
    try:
        response = await call_next(request)
    finally:
        correlation_id.reset(token)
    response.headers["X-Request-Id"] = cid
    return response


# ── Error rendering ──────────────────────────────────────────
def _is_openkj(request: Request) -> bool:
    return request.url.path.startswith(_settings.openkj_prefix)


def _error_response(request: Request, exc: AppError) -> JSONResponse:
    headers = {}
    if isinstance(exc, RateLimitError):
        headers["Retry-After"] = str(exc.retry_after)
    if _is_openkj(request):
        body = {"error": exc.title, "message": exc.detail}
    else:
        body = exc.to_problem()
    return JSONResponse(
        status_code=exc.status_code,
        content=body,
        headers=headers,
        media_type="application/json" if _is_openkj(request) else "application/problem+json",
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(p) for p in err["loc"] if p not in ("body", "query", "path")),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return _error_response(request, ValidationError("Request validation failed", errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    error = AppError(str(exc.detail))
    error.status_code = exc.status_code
    error.type = "http_error"
    error.title = HTTPStatus(exc.status_code).phrase
    response = _error_response(request, error)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    cid = getattr(request.state, "correlation_id", None)
    logger.exception(
        "Unhandled error on %s %s (correlation id %s)", request.method, request.url.path, cid,
    )
    if _is_openkj(request):
        content = {"error": "Internal Server Error", "message": "An unexpected error occurred"}
    else:
        content = {**InternalError().to_problem(), "correlation_id": cid}
    return JSONResponse(
        status_code=500,
        content=content,
        headers={"X-Request-Id": cid} if cid else None,
    )


# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)
app.include_router(openkj_router, prefix=_settings.openkj_prefix, dependencies=rate_limited)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
