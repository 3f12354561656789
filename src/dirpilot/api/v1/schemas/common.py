# Common API response schemas.
# Created: 2026-10-12

from __future__ import annotations

from pydantic import BaseModel

from dirpilot.workspace.errors import Failure


class APIResponse(BaseModel):
    """Base response wrapper."""

    model_config = {"from_attributes": True}


class ErrorInfo(APIResponse):
    """A tagged failure, returned inside an otherwise successful response."""

    kind: str
    message: str
    path: str | None = None

    @classmethod
    def from_failure(cls, failure: Failure) -> ErrorInfo:
        return cls(kind=failure.kind.value, message=failure.message, path=failure.path)


class OkResponse(APIResponse):
    """Simple success response."""

    ok: bool = True


class StatusResponse(APIResponse):
    """Status string response."""

    status: str = "ok"
