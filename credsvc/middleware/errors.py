"""Turn unexpected exceptions into the generic 500 inside the middleware stack.

Starlette runs an ``Exception`` handler in ServerErrorMiddleware, outside
every user middleware, so that response would miss X-Request-ID, the
security headers and CORS, and the exception would be re-raised to the
server.  Registered innermost, this middleware answers first and the
500 travels back out through the rest of the stack like any other
response.  Domain errors never reach it: FastAPI's exception handlers
render them further in.
"""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled error  %s %s",
                request.method,
                request.url.path,
                exc_info=exc,
            )
            return JSONResponse(
                status_code=500, content={"message": "Internal server error"}
            )
