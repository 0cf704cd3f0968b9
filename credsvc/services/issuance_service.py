"""Credential issuance: assign an id, insert once, confirm.

The upfront ``exists`` check only turns away the common duplicate early.
Two requests racing on the same id can both pass it; the store's insert
then rejects the loser with AlreadyIssued, so exactly one record is ever
written per id.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from credsvc.core.errors import AlreadyIssued, InvalidInput
from credsvc.core.metrics import CREDENTIALS_ISSUED, ISSUANCE_CONFLICTS
from credsvc.models.credential import CredentialRecord, coerce_credential_id
from credsvc.repos.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IssuanceResult:
    credential_id: str
    worker: str
    timestamp: str


def new_credential_id() -> str:
    return str(uuid.uuid4())


def resolve_credential_id(document: dict[str, Any]) -> str:
    """The caller's ``id`` when present and non-empty, otherwise a fresh UUID."""
    try:
        credential_id = coerce_credential_id(document.get("id"))
    except TypeError as e:
        logger.warning("Rejected credential with unusable id: %s", e)
        raise InvalidInput(str(e)) from None
    return credential_id or new_credential_id()


async def issue_credential(
    store: RecordStore,
    document: Any,
    *,
    worker_id: str,
    now: datetime | None = None,
) -> IssuanceResult:
    if not isinstance(document, dict):
        logger.warning("Invalid credential format received  worker=%s", worker_id)
        raise InvalidInput()

    credential_id = resolve_credential_id(document)

    if await store.exists(credential_id):
        ISSUANCE_CONFLICTS.labels(stage="precheck").inc()
        logger.info(
            "Credential %s already issued  worker=%s",
            credential_id,
            worker_id,
            extra={"credential_id": credential_id},
        )
        raise AlreadyIssued(credential_id)

    record = CredentialRecord.new(
        credential_id=credential_id,
        document=document,
        issued_by=worker_id,
        now=now,
    )

    try:
        await store.save(credential_id, record)
    except AlreadyIssued:
        ISSUANCE_CONFLICTS.labels(stage="insert").inc()
        logger.info(
            "Credential %s already issued (lost insert race)  worker=%s",
            credential_id,
            worker_id,
            extra={"credential_id": credential_id},
        )
        raise

    CREDENTIALS_ISSUED.labels(worker=worker_id).inc()
    logger.info(
        "Credential %s issued by %s",
        credential_id,
        worker_id,
        extra={"credential_id": credential_id},
    )
    return IssuanceResult(
        credential_id=credential_id,
        worker=worker_id,
        timestamp=record.issued_at,
    )
