"""Tests for POST /issue."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from credsvc.repos.record_store import InMemoryRecordStore
from tests.conftest import ISSUER_ID


def test_issue_generates_id_when_missing(issuer: TestClient) -> None:
    resp = issuer.post("/issue", json={"name": "John Doe", "role": "Developer"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["credentialId"]
    assert body["worker"] == ISSUER_ID
    assert body["message"] == f"Credential issued by {ISSUER_ID}"
    assert body["timestamp"].endswith("Z")


def test_issue_same_body_without_id_twice_gives_two_ids(issuer: TestClient) -> None:
    doc = {"name": "John Doe", "role": "Developer"}
    first = issuer.post("/issue", json=doc)
    second = issuer.post("/issue", json=doc)
    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["credentialId"] != second.json()["credentialId"]


def test_generated_ids_are_unique(issuer: TestClient) -> None:
    ids = {issuer.post("/issue", json={"n": i}).json()["credentialId"] for i in range(25)}
    assert len(ids) == 25


def test_issue_uses_caller_supplied_id(issuer: TestClient) -> None:
    resp = issuer.post("/issue", json={"id": "CRED-1", "name": "Alice"})
    assert resp.status_code == 201
    assert resp.json()["credentialId"] == "CRED-1"


def test_issue_duplicate_id_conflicts(
    issuer: TestClient, store: InMemoryRecordStore
) -> None:
    doc = {"id": "CRED-1", "name": "Alice"}
    assert issuer.post("/issue", json=doc).status_code == 201

    resp = issuer.post("/issue", json=doc)
    assert resp.status_code == 409
    assert resp.json() == {"message": "Credential already issued"}
    assert len(store) == 1


def test_issue_duplicate_id_with_different_payload_keeps_first(
    issuer: TestClient, store: InMemoryRecordStore
) -> None:
    issuer.post("/issue", json={"id": "CRED-2", "name": "Alice"})
    resp = issuer.post("/issue", json={"id": "CRED-2", "name": "Mallory"})
    assert resp.status_code == 409

    record = asyncio.run(store.get("CRED-2"))
    assert record is not None
    assert record.payload == {"id": "CRED-2", "name": "Alice"}


def test_issue_empty_id_is_treated_as_missing(issuer: TestClient) -> None:
    resp = issuer.post("/issue", json={"id": "", "name": "Bob"})
    assert resp.status_code == 201
    assert resp.json()["credentialId"] != ""


def test_issue_empty_object_is_valid(issuer: TestClient) -> None:
    resp = issuer.post("/issue", json={})
    assert resp.status_code == 201


def test_issue_rejects_array_body(
    issuer: TestClient, store: InMemoryRecordStore
) -> None:
    resp = issuer.post("/issue", json=[{"id": "CRED-3"}])
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid credential format"}
    assert len(store) == 0


def test_issue_rejects_scalar_body(issuer: TestClient) -> None:
    for body in ("a string", 42, None, True):
        resp = issuer.post("/issue", json=body)
        assert resp.status_code == 400, body
        assert resp.json() == {"message": "Invalid credential format"}


def test_issue_rejects_malformed_json(
    issuer: TestClient, store: InMemoryRecordStore
) -> None:
    resp = issuer.post(
        "/issue",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid credential format"}
    assert len(store) == 0


def test_issue_rejects_empty_body(issuer: TestClient) -> None:
    resp = issuer.post("/issue", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400


def test_issue_rejects_object_as_id(
    issuer: TestClient, store: InMemoryRecordStore
) -> None:
    resp = issuer.post("/issue", json={"id": {"nested": True}})
    assert resp.status_code == 400
    assert len(store) == 0


def test_issue_route_absent_on_verification_service(verifier: TestClient) -> None:
    resp = verifier.post("/issue", json={"name": "x"})
    assert resp.status_code in (404, 405)
