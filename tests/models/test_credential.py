from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from credsvc.models.credential import (
    CredentialRecord,
    coerce_credential_id,
    utc_timestamp,
)


def test_utc_timestamp_format() -> None:
    now = datetime(2026, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
    assert utc_timestamp(now) == "2026-01-02T03:04:05.678Z"


def test_utc_timestamp_converts_offsets_to_utc() -> None:
    plus_two = timezone(timedelta(hours=2))
    now = datetime(2026, 1, 2, 5, 4, 5, 0, tzinfo=plus_two)
    assert utc_timestamp(now) == "2026-01-02T03:04:05.000Z"


def test_utc_timestamp_defaults_to_now() -> None:
    stamp = utc_timestamp()
    parsed = datetime.strptime(stamp, "%Y-%m-%dT%H:%M:%S.%fZ").replace(tzinfo=timezone.utc)
    assert abs(datetime.now(timezone.utc) - parsed) < timedelta(seconds=5)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("", None), ("CRED-1", "CRED-1"), (7, "7"), (" spaced ", " spaced ")],
)
def test_coerce_credential_id(raw, expected) -> None:
    assert coerce_credential_id(raw) == expected


@pytest.mark.parametrize("raw", [False, {"x": 1}, ["a"]])
def test_coerce_credential_id_rejects_non_scalars(raw) -> None:
    with pytest.raises(TypeError):
        coerce_credential_id(raw)


def test_new_record_fills_missing_id() -> None:
    record = CredentialRecord.new(
        credential_id="CRED-1",
        document={"name": "Alice"},
        issued_by="worker-1",
    )
    assert record.payload == {"id": "CRED-1", "name": "Alice"}


@pytest.mark.parametrize("supplied", [1001, 0, 2.5, "CRED-1"])
def test_new_record_keeps_supplied_id_as_sent(supplied) -> None:
    record = CredentialRecord.new(
        credential_id=coerce_credential_id(supplied),
        document={"id": supplied, "name": "Alice"},
        issued_by="worker-1",
    )
    assert record.payload == {"id": supplied, "name": "Alice"}
    assert type(record.payload["id"]) is type(supplied)
    assert record.id == str(supplied)


def test_stored_shape() -> None:
    record = CredentialRecord(
        id="CRED-1",
        payload={"id": "CRED-1"},
        issued_by="worker-1",
        issued_at="2026-01-02T03:04:05.678Z",
    )
    assert json.loads(record.to_json()) == {
        "credential": {"id": "CRED-1"},
        "worker": "worker-1",
        "timestamp": "2026-01-02T03:04:05.678Z",
    }
    assert CredentialRecord.from_json("CRED-1", record.to_json()) == record
