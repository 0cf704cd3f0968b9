"""Prometheus scrape endpoint (both services).

Returns the text exposition format, not JSON.  Restrict it to the
monitoring network in production: request rates and error counts per
route are visible here.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
