"""End-to-end flows against real SQLite files.

Each service gets its own SqlRecordStore, as separate processes would;
"shared" tests point both at the same database file.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from credsvc.main import create_app
from tests.conftest import ISSUER_ID, VERIFIER_ID, make_settings


@pytest.fixture
def services(sqlite_url: str) -> Iterator[tuple[TestClient, TestClient]]:
    settings = make_settings(database_url=sqlite_url)
    issuance = create_app("issuance", settings, worker_id=ISSUER_ID)
    verification = create_app("verification", settings, worker_id=VERIFIER_ID)
    # Context managers run the lifespan: schema creation and store shutdown
    with TestClient(issuance) as issuer, TestClient(verification) as verifier:
        yield issuer, verifier


def test_scenario_generated_ids_never_conflict(services) -> None:
    issuer, _ = services
    doc = {"name": "John Doe", "role": "Developer"}
    first = issuer.post("/issue", json=doc)
    second = issuer.post("/issue", json=doc)
    assert (first.status_code, second.status_code) == (201, 201)
    assert first.json()["credentialId"] != second.json()["credentialId"]


def test_scenario_explicit_id_conflicts_on_repeat(services) -> None:
    issuer, _ = services
    doc = {"id": "CRED-1", "name": "Alice"}

    first = issuer.post("/issue", json=doc)
    assert first.status_code == 201
    assert first.json()["credentialId"] == "CRED-1"

    again = issuer.post("/issue", json=doc)
    assert again.status_code == 409
    assert again.json() == {"message": "Credential already issued"}


def test_scenario_issued_credential_verifies(services) -> None:
    issuer, verifier = services
    issued = issuer.post("/issue", json={"id": "CRED-1", "name": "Alice"}).json()

    resp = verifier.post("/verify", json={"id": "CRED-1"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "valid"
    assert body["credential"] == {"id": "CRED-1", "name": "Alice"}
    assert body["worker"] == ISSUER_ID
    assert body["timestamp"] == issued["timestamp"]


def test_scenario_unknown_credential_is_invalid(services) -> None:
    _, verifier = services
    resp = verifier.post("/verify", json={"id": "CRED-UNKNOWN"})
    assert resp.status_code == 404
    assert resp.json() == {"status": "invalid", "message": "Credential not found"}


def test_records_survive_restart(sqlite_url: str) -> None:
    settings = make_settings(database_url=sqlite_url)

    with TestClient(create_app("issuance", settings, worker_id="worker-a")) as first:
        assert first.post("/issue", json={"id": "CRED-P", "x": 1}).status_code == 201

    # New process, new worker id, same database file
    with TestClient(create_app("issuance", settings, worker_id="worker-b")) as second:
        assert second.post("/issue", json={"id": "CRED-P", "x": 2}).status_code == 409

    with TestClient(create_app("verification", settings)) as verifier:
        body = verifier.get("/verify/CRED-P").json()
        assert body["worker"] == "worker-a"
        assert body["credential"] == {"id": "CRED-P", "x": 1}


def test_ready_with_sqlite_store(services) -> None:
    issuer, verifier = services
    assert issuer.get("/ready").status_code == 200
    assert verifier.get("/ready").status_code == 200
