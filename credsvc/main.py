from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from credsvc.api.health import router as health_router
from credsvc.api.issue import router as issue_router
from credsvc.api.metrics_endpoint import router as metrics_router
from credsvc.api.verify import router as verify_router
from credsvc.core.config import SETTINGS, ServiceKind, Settings
from credsvc.core.errors import CredentialServiceError, RateLimited
from credsvc.core.logging import setup_logging
from credsvc.db.redis import build_redis, lifespan_redis
from credsvc.middleware.errors import UnhandledErrorMiddleware
from credsvc.middleware.metrics import MetricsMiddleware
from credsvc.middleware.request_context import (
    RequestContextMiddleware,
    install_request_context_filter,
)
from credsvc.middleware.security_headers import SecurityHeadersMiddleware
from credsvc.repos.record_store import InMemoryRecordStore, RecordStore
from credsvc.repos.sql_record_store import SqlRecordStore
from credsvc.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimiter,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)

# The only difference between the two services: which business route they serve.
_SERVICE_ROUTERS = {
    "issuance": issue_router,
    "verification": verify_router,
}

_WORKER_PREFIX = {
    "issuance": "worker",
    "verification": "verifier",
}


def default_worker_id(kind: ServiceKind) -> str:
    return f"{_WORKER_PREFIX[kind]}-{uuid.uuid4().hex[:8]}"


def build_record_store(settings: Settings) -> RecordStore:
    if settings.database_url is None:
        logger.info("No DATABASE_URL configured, using in-memory record store")
        return InMemoryRecordStore()
    return SqlRecordStore(
        settings.database_url,
        echo=settings.is_dev and settings.log_level == "debug",
    )


async def _handle_service_error(
    request: Request, exc: CredentialServiceError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed  %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc.__cause__ or exc,
        )
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(int(exc.retry_after) + 1)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=headers,
    )


def create_app(
    kind: ServiceKind,
    settings: Settings = SETTINGS,
    *,
    worker_id: str | None = None,
    store: RecordStore | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Build the issuance or verification service.

    Both share the record store lifecycle, middleware, error handling and
    the health/metrics routes; ``kind`` selects the business route.  The
    store and rate limiter may be injected (tests); otherwise they are
    built from ``settings``.
    """
    if kind not in _SERVICE_ROUTERS:
        raise ValueError(f"unknown service kind {kind!r}")

    worker_id = worker_id or settings.worker_id or default_worker_id(kind)
    store = store if store is not None else build_record_store(settings)

    redis_client = None
    if rate_limiter is None:
        if settings.redis_url:
            redis_client = build_redis(settings.redis_url)
            rate_limiter = RedisRateLimiter(redis_client, prefix=f"ratelimit:{kind}")
        else:
            rate_limiter = InMemoryRateLimiter()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup creates the schema; shutdown always releases the store,
        # even if Redis teardown fails.
        await store.init()
        logger.info("%s service (%s) starting", kind.capitalize(), worker_id)
        try:
            async with lifespan_redis(redis_client):
                yield
        finally:
            await store.close()
            logger.info("%s service (%s) stopped", kind.capitalize(), worker_id)

    app = FastAPI(
        title=f"{kind}-service",
        lifespan=lifespan,
        docs_url="/api-docs" if settings.is_dev else None,
        redoc_url=None,
    )

    app.state.kind = kind
    app.state.worker_id = worker_id
    app.state.store = store
    app.state.rate_limiter = rate_limiter
    app.state.rate_limit_config = RateLimitConfig(
        capacity=settings.rate_limit_capacity,
        window_seconds=settings.rate_limit_window_seconds,
    )

    app.add_exception_handler(CredentialServiceError, _handle_service_error)

    app.add_middleware(UnhandledErrorMiddleware)

    allow_all = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else list(settings.cors_origins),
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Last-added runs first (outermost):
    # RequestContext → Metrics → SecurityHeaders → CORS → UnhandledError → route handler
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(_SERVICE_ROUTERS[kind])

    return app


# Process-wide app for `uvicorn credsvc.main:app`; SERVICE picks the kind.
WORKER_ID = SETTINGS.worker_id or default_worker_id(SETTINGS.service)

setup_logging(
    SETTINGS.log_level,
    json_format=SETTINGS.log_json,
    worker=WORKER_ID,
    service=SETTINGS.service,
)
install_request_context_filter()

app = create_app(SETTINGS.service, SETTINGS, worker_id=WORKER_ID)

logger.info(
    "%s-service configured  worker=%s env=%s log_level=%s port=%d docs=%s",
    SETTINGS.service,
    WORKER_ID,
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
