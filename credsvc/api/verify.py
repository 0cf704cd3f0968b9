"""Verification endpoints (verification service only).

POST /verify          : body {"id": ...}
GET  /verify/{id}     : the identifier directly

  200 {status: "valid", worker, timestamp, credential}
  404 {status: "invalid", message: "Credential not found"}
  400 {message}
  500 {message: "Internal server error"}

``worker`` and ``timestamp`` are the ones recorded when the credential
was issued, not the verifying instance's.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from credsvc.api.dependencies import get_store, read_json_body
from credsvc.api.ratelimit import require_rate_limit
from credsvc.api.schemas import (
    CREDENTIAL_BODY_OPENAPI,
    ERROR_RESPONSES,
    NotFoundOut,
    VerifyOut,
)
from credsvc.models.credential import CredentialRecord
from credsvc.repos.record_store import RecordStore
from credsvc.services import verification_service

router = APIRouter(tags=["verification"])

_RESPONSES: dict[int | str, dict[str, Any]] = {
    **ERROR_RESPONSES,
    404: {"model": NotFoundOut, "description": "Credential not found"},
}


def _render(record: CredentialRecord | None) -> VerifyOut | JSONResponse:
    if record is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=NotFoundOut(
                status="invalid", message="Credential not found"
            ).model_dump(),
        )
    return VerifyOut(
        status="valid",
        worker=record.issued_by,
        timestamp=record.issued_at,
        credential=record.payload,
    )


@router.post(
    "/verify",
    response_model=VerifyOut,
    responses=_RESPONSES,
    openapi_extra=CREDENTIAL_BODY_OPENAPI,
    dependencies=[Depends(require_rate_limit("/verify"))],
)
async def verify(
    document: Annotated[Any, Depends(read_json_body)],
    store: Annotated[RecordStore, Depends(get_store)],
):
    record = await verification_service.verify_credential(store, document)
    return _render(record)


@router.get(
    "/verify/{credential_id}",
    response_model=VerifyOut,
    responses=_RESPONSES,
    dependencies=[Depends(require_rate_limit("/verify"))],
)
async def verify_by_id(
    credential_id: str,
    store: Annotated[RecordStore, Depends(get_store)],
):
    record = await verification_service.lookup_credential(store, credential_id)
    return _render(record)
