"""Request-scoped dependencies shared by both services.

The store, worker id and rate limiter live on ``app.state``; they are
set once by ``create_app`` and are the same objects for every request a
process serves.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request

from credsvc.repos.record_store import RecordStore

logger = logging.getLogger(__name__)


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_worker_id(request: Request) -> str:
    return request.app.state.worker_id


async def read_json_body(request: Request) -> Any:
    """Parse the body as JSON without imposing a schema.

    Returns None for an empty or unparsable body so the service layer can
    reject it as InvalidInput alongside non-object documents.
    """
    try:
        return await request.json()
    except ValueError:
        logger.debug("Request body is not valid JSON  path=%s", request.url.path)
        return None
