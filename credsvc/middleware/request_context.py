"""Request context middleware: a request id for every request.

Both services run many requests concurrently on one event loop, so their
log lines interleave.  The request id, kept in a ContextVar (per-task,
unlike a thread-local), is attached to every log record emitted while
the request is in flight, which lets "Credential X issued" be traced
back to the HTTP call that caused it.

The middleware also times each request and logs one summary line.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class _RequestContextFilter(logging.Filter):
    """Copies the current request id onto every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


def install_request_context_filter() -> None:
    """Attach the filter to the root logger's handlers (idempotent).

    Filters on a logger only see records logged directly to it, so the
    filter goes on the handlers, which see everything that propagates.
    """
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, _RequestContextFilter) for f in handler.filters):
            handler.addFilter(_RequestContextFilter())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, time the request, log a completion line.

    1. Reuse the caller's X-Request-ID or generate a UUID
    2. Store it in the ContextVar for the log filter
    3. Log method, path, status and duration on completion
    4. Echo X-Request-ID (and any rate-limit headers) on the response
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(req_id)

        start = time.monotonic()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        for name, value in getattr(request.state, "rate_limit_headers", {}).items():
            response.headers[name] = value

        return response
