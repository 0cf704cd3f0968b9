"""Health and readiness endpoints (both services).

/health (liveness): the process can answer.  Always 200 with the worker
identity, so a load balancer or operator can see which replica replied.

/ready (readiness): the record store answers a trivial query.  503 takes
the instance out of rotation without restarting it.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from credsvc.api.dependencies import get_store, get_worker_id
from credsvc.api.schemas import HealthOut
from credsvc.core.errors import StorageError
from credsvc.models.credential import utc_timestamp
from credsvc.repos.record_store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
async def health(worker_id: Annotated[str, Depends(get_worker_id)]) -> HealthOut:
    return HealthOut(status="healthy", worker=worker_id, timestamp=utc_timestamp())


@router.get("/ready")
async def ready(
    store: Annotated[RecordStore, Depends(get_store)],
    worker_id: Annotated[str, Depends(get_worker_id)],
) -> JSONResponse:
    try:
        await store.ping()
    except StorageError:
        logger.warning("Readiness check failed: record store unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "worker": worker_id},
        )
    return JSONResponse(content={"status": "ready", "worker": worker_id})
