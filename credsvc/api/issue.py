"""Issuance endpoint (issuance service only).

POST /issue: accept a JSON credential, assign an id if it has none,
persist it once, and confirm which worker issued it.

  201 {message, worker, credentialId, timestamp}
  400 {message: "Invalid credential format"}
  409 {message: "Credential already issued"}
  500 {message: "Internal server error"}
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from credsvc.api.dependencies import get_store, get_worker_id, read_json_body
from credsvc.api.ratelimit import require_rate_limit
from credsvc.api.schemas import (
    CREDENTIAL_BODY_OPENAPI,
    ERROR_RESPONSES,
    IssueOut,
    MessageOut,
)
from credsvc.repos.record_store import RecordStore
from credsvc.services import issuance_service

router = APIRouter(tags=["issuance"])


@router.post(
    "/issue",
    response_model=IssueOut,
    status_code=status.HTTP_201_CREATED,
    responses={
        **ERROR_RESPONSES,
        409: {"model": MessageOut, "description": "Credential already issued"},
    },
    openapi_extra=CREDENTIAL_BODY_OPENAPI,
    dependencies=[Depends(require_rate_limit("/issue"))],
)
async def issue(
    document: Annotated[Any, Depends(read_json_body)],
    store: Annotated[RecordStore, Depends(get_store)],
    worker_id: Annotated[str, Depends(get_worker_id)],
) -> IssueOut:
    result = await issuance_service.issue_credential(
        store, document, worker_id=worker_id
    )
    return IssueOut(
        message=f"Credential issued by {result.worker}",
        worker=result.worker,
        credentialId=result.credential_id,
        timestamp=result.timestamp,
    )
