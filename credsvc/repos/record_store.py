from __future__ import annotations

from typing import Protocol, runtime_checkable

from credsvc.core.errors import AlreadyIssued
from credsvc.models.credential import CredentialRecord


@runtime_checkable
class RecordStore(Protocol):
    """Key-value persistence for issued credentials, keyed by credential id.

    ``save`` is insert-only: a second save for the same id raises
    AlreadyIssued, never overwrites.  I/O failures raise StorageError.
    ``get`` returns None for an unknown id.
    """

    async def init(self) -> None: ...
    async def close(self) -> None: ...
    async def ping(self) -> None: ...
    async def exists(self, credential_id: str) -> bool: ...
    async def get(self, credential_id: str) -> CredentialRecord | None: ...
    async def save(self, credential_id: str, record: CredentialRecord) -> None: ...


class InMemoryRecordStore:
    """Dict-backed store for tests and DATABASE_URL=memory.

    Every method body runs without an await, so on a single event loop
    the membership check and the insert in ``save`` cannot interleave
    with another request.
    """

    def __init__(self) -> None:
        self._records: dict[str, CredentialRecord] = {}

    async def init(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def ping(self) -> None:
        return None

    async def exists(self, credential_id: str) -> bool:
        return credential_id in self._records

    async def get(self, credential_id: str) -> CredentialRecord | None:
        return self._records.get(credential_id)

    async def save(self, credential_id: str, record: CredentialRecord) -> None:
        if credential_id in self._records:
            raise AlreadyIssued(credential_id)
        self._records[credential_id] = record

    def __len__(self) -> int:
        return len(self._records)
