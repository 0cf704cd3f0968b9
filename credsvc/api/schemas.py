"""Response bodies shared by both services.

Field names are camelCase where the HTTP contract is (``credentialId``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class MessageOut(BaseModel):
    message: str


class HealthOut(BaseModel):
    status: str
    worker: str
    timestamp: str


class IssueOut(BaseModel):
    message: str
    worker: str
    credentialId: str
    timestamp: str


class VerifyOut(BaseModel):
    status: str
    worker: str
    timestamp: str
    credential: dict[str, Any]


class NotFoundOut(BaseModel):
    status: str
    message: str


# Request body documented for OpenAPI; the handlers parse it themselves
# so that a non-object body is a 400, not a 422.
CREDENTIAL_BODY_OPENAPI = {
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {
                "schema": {
                    "type": "object",
                    "additionalProperties": True,
                    "properties": {"id": {"type": "string"}},
                },
                "example": {"id": "CRED-1", "name": "Alice"},
            }
        },
    }
}

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": MessageOut, "description": "Malformed input"},
    429: {"model": MessageOut, "description": "Rate limit exceeded"},
    500: {"model": MessageOut, "description": "Internal server error"},
}
