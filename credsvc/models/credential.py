from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2026-10-19T08:15:30.123Z."""
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def coerce_credential_id(value: Any) -> str | None:
    """Return the identifier carried by a document's ``id`` field.

    None and "" mean "no identifier".  Numbers are keyed by their string
    form (the payload keeps the number as sent).  Anything else
    (objects, arrays, booleans) raises TypeError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise TypeError(f"credential id must be a string or number, not {type(value).__name__}")
    return str(value)


@dataclass(frozen=True, slots=True)
class CredentialRecord:
    """An issued credential as persisted by the record store."""

    id: str
    payload: dict[str, Any]  # submitted document, always carrying "id"
    issued_by: str
    issued_at: str

    @staticmethod
    def new(
        *,
        credential_id: str,
        document: dict[str, Any],
        issued_by: str,
        now: datetime | None = None,
    ) -> CredentialRecord:
        # A caller-supplied id is stored as sent; only a missing one is filled in
        supplied = document.get("id")
        return CredentialRecord(
            id=credential_id,
            payload={
                **document,
                "id": credential_id if supplied is None or supplied == "" else supplied,
            },
            issued_by=issued_by,
            issued_at=utc_timestamp(now),
        )

    # Stored shape is {"credential", "worker", "timestamp"} so that both
    # services read rows the same way regardless of which one wrote them.

    def to_data(self) -> dict[str, Any]:
        return {
            "credential": self.payload,
            "worker": self.issued_by,
            "timestamp": self.issued_at,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_data(), separators=(",", ":"))

    @staticmethod
    def from_data(credential_id: str, data: dict[str, Any]) -> CredentialRecord:
        return CredentialRecord(
            id=credential_id,
            payload=data.get("credential") or {},
            issued_by=data.get("worker", ""),
            issued_at=data.get("timestamp", ""),
        )

    @staticmethod
    def from_json(credential_id: str, raw: str) -> CredentialRecord:
        return CredentialRecord.from_data(credential_id, json.loads(raw))
