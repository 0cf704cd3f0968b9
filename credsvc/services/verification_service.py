from __future__ import annotations

import logging
from typing import Any

from credsvc.core.errors import InvalidInput, MissingIdentifier
from credsvc.core.metrics import VERIFICATIONS
from credsvc.models.credential import CredentialRecord, coerce_credential_id
from credsvc.repos.record_store import RecordStore

logger = logging.getLogger(__name__)


def extract_credential_id(document: Any) -> str:
    """The ``id`` carried by a verification request body (a JSON object)."""
    if not isinstance(document, dict):
        logger.warning("Invalid credential format received for verification")
        raise InvalidInput()

    try:
        credential_id = coerce_credential_id(document.get("id"))
    except TypeError as e:
        logger.warning("Rejected verification with unusable id: %s", e)
        raise InvalidInput(str(e)) from None

    if credential_id is None:
        logger.warning("Credential ID missing in verification request")
        raise MissingIdentifier()
    return credential_id


async def verify_credential(
    store: RecordStore, document: Any
) -> CredentialRecord | None:
    """Look up the credential named by a request body's ``id``.

    Returns None when the id was never issued; that is an ordinary
    answer, not an error.  Storage failures propagate as StorageError.
    """
    return await lookup_credential(store, extract_credential_id(document))


async def lookup_credential(
    store: RecordStore, credential_id: str
) -> CredentialRecord | None:
    """Look up a credential by its identifier (``GET /verify/{id}``)."""
    if not credential_id:
        raise MissingIdentifier()

    record = await store.get(credential_id)
    if record is None:
        VERIFICATIONS.labels(result="invalid").inc()
        logger.info(
            "Credential %s not found",
            credential_id,
            extra={"credential_id": credential_id},
        )
        return None

    VERIFICATIONS.labels(result="valid").inc()
    logger.info(
        "Credential %s verified successfully  issued_by=%s",
        credential_id,
        record.issued_by,
        extra={"credential_id": credential_id},
    )
    return record
