"""Domain exceptions shared by both services.

Service functions and record stores raise these; the handlers registered
in ``credsvc.main.create_app`` turn them into ``{"message": ...}``
responses.  ``message`` is what the caller sees, so it never contains
driver output; the underlying cause stays on ``__cause__`` for the logs.

A verification miss is not an exception: ``verify_credential`` returns
``None`` and the route answers 404 with ``status: "invalid"``.
"""

from __future__ import annotations


class CredentialServiceError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail


class InvalidInput(CredentialServiceError):
    status_code = 400
    message = "Invalid credential format"


class MissingIdentifier(InvalidInput):
    message = "Credential ID is required"


class AlreadyIssued(CredentialServiceError):
    status_code = 409
    message = "Credential already issued"

    def __init__(self, credential_id: str) -> None:
        super().__init__(f"credential {credential_id!r} already issued")
        self.credential_id = credential_id


class StorageError(CredentialServiceError):
    status_code = 500
    message = "Internal server error"

    def __init__(self, operation: str, detail: str | None = None) -> None:
        super().__init__(detail or f"record store {operation} failed")
        self.operation = operation


class RateLimited(CredentialServiceError):
    status_code = 429
    message = "Too many requests from this IP, please try again later."

    def __init__(self, retry_after: float) -> None:
        super().__init__(f"rate limited, retry after {retry_after:.1f}s")
        self.retry_after = retry_after
