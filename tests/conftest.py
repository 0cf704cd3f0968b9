from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

# Settings are read at import time; keep the default app off the disk.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "memory")

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from credsvc.core.config import SETTINGS, Settings  # noqa: E402
from credsvc.core.errors import StorageError  # noqa: E402
from credsvc.main import create_app  # noqa: E402
from credsvc.models.credential import CredentialRecord  # noqa: E402
from credsvc.repos.record_store import InMemoryRecordStore  # noqa: E402

ISSUER_ID = "worker-test0001"
VERIFIER_ID = "verifier-test0001"


def make_settings(**overrides) -> Settings:
    values = {"app_env": "test", "database_url": None, "redis_url": None}
    values.update(overrides)
    return replace(SETTINGS, **values)


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def issuance_app(store: InMemoryRecordStore) -> FastAPI:
    return create_app(
        "issuance", make_settings(), worker_id=ISSUER_ID, store=store
    )


@pytest.fixture
def verification_app(store: InMemoryRecordStore) -> FastAPI:
    # Same store as issuance_app: the shared-database deployment
    return create_app(
        "verification", make_settings(), worker_id=VERIFIER_ID, store=store
    )


@pytest.fixture
def issuer(issuance_app: FastAPI) -> TestClient:
    return TestClient(issuance_app)


@pytest.fixture
def verifier(verification_app: FastAPI) -> TestClient:
    return TestClient(verification_app)


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'data' / 'credentials.db'}"


class FailingRecordStore(InMemoryRecordStore):
    """Store whose I/O fails on the named operations."""

    def __init__(self, *failing: str) -> None:
        super().__init__()
        self.failing = set(failing)

    async def ping(self) -> None:
        if "ping" in self.failing:
            raise StorageError("ping", "disk I/O error at /var/lib/secret.db")

    async def exists(self, credential_id: str) -> bool:
        if "exists" in self.failing:
            raise StorageError("exists", "disk I/O error at /var/lib/secret.db")
        return await super().exists(credential_id)

    async def get(self, credential_id: str) -> CredentialRecord | None:
        if "get" in self.failing:
            raise StorageError("get", "disk I/O error at /var/lib/secret.db")
        return await super().get(credential_id)

    async def save(self, credential_id: str, record: CredentialRecord) -> None:
        if "save" in self.failing:
            raise StorageError("save", "disk I/O error at /var/lib/secret.db")
        await super().save(credential_id, record)


class RacingRecordStore(InMemoryRecordStore):
    """Store where another writer always wins between exists() and save().

    ``exists`` reports the id as free; ``save`` then finds it taken, the
    way a second process would see a concurrent INSERT on the same key.
    """

    async def exists(self, credential_id: str) -> bool:
        return False

    async def save(self, credential_id: str, record: CredentialRecord) -> None:
        if credential_id not in self._records:
            self._records[credential_id] = CredentialRecord.new(
                credential_id=credential_id,
                document={"winner": "other-worker"},
                issued_by="worker-other",
            )
        await super().save(credential_id, record)
