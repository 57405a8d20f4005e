from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app_logging import configure_logging
from config import RateLimitConfig, get_rate_limit_config, is_scheduler_enabled, load_env_file
from db.db_conn import DbConn
from errors import (
    InvalidDataShape,
    InvalidQueryParameter,
    StoreWriteFailure,
    SyncAlreadyRunning,
    UpstreamError,
)
from sync.scheduler import HourlySyncScheduler
from web import deps
from web.middleware import RequestLogMiddleware, SecurityHeadersMiddleware
from web.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from web.routes import crypto

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidQueryParameter)
    async def invalid_query(_: Request, exc: InvalidQueryParameter) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(InvalidDataShape)
    async def invalid_shape(_: Request, exc: InvalidDataShape) -> JSONResponse:
        logger.error("Response validation failed: %s", exc)
        return _error(500, "Invalid data format")

    @app.exception_handler(SyncAlreadyRunning)
    async def sync_running(_: Request, exc: SyncAlreadyRunning) -> JSONResponse:
        return _error(409, str(exc))

    @app.exception_handler(UpstreamError)
    async def upstream_failed(_: Request, exc: UpstreamError) -> JSONResponse:
        logger.error("Sync failed: %s", exc)
        return _error(502, str(exc))

    @app.exception_handler(StoreWriteFailure)
    async def store_failed(_: Request, exc: StoreWriteFailure) -> JSONResponse:
        logger.error("Sync failed: %s", exc)
        return _error(500, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.middleware("http")
    async def terminal_error_handler(request: Request, call_next):
        # Last stop for anything the handlers above did not map.
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return _error(500, "Internal Server Error")


def create_app(
    rate_limit: Optional[RateLimitConfig] = None,
    enable_scheduler: Optional[bool] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    load_env_file()
    configure_logging()

    run_scheduler = is_scheduler_enabled() if enable_scheduler is None else enable_scheduler

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        scheduler: Optional[HourlySyncScheduler] = None
        if run_scheduler:
            db = deps.get_optional_db_conn()
            if db is None:
                logger.warning("Database URL not configured; hourly sync disabled")
            else:
                scheduler = HourlySyncScheduler(deps.build_pipeline(db))
                scheduler.start()
        try:
            yield
        finally:
            if scheduler:
                scheduler.stop()

    app = FastAPI(
        title="Crypto Tracker API",
        version="0.1.0",
        description="Top-10 cryptocurrency snapshot, history and averages.",
        lifespan=lifespan,
    )

    @app.get("/ping", response_class=PlainTextResponse)
    def ping() -> str:
        return "working"

    @app.get("/health")
    def health(db: Optional[DbConn] = Depends(deps.get_optional_db_conn)) -> dict[str, str]:
        database = "ok" if db is not None and db.test_connection() else "unavailable"
        return {"status": "ok", "database": database}

    app.include_router(crypto.router)

    _register_error_handlers(app)
    # Last added is outermost; CORS has to wrap the rate limiter and its 429s.
    app.add_middleware(
        RateLimitMiddleware,
        limiter=FixedWindowRateLimiter(rate_limit or get_rate_limit_config()),
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()
