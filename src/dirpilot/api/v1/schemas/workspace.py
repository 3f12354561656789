# Workspace schemas.
# Created: 2026-10-12

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from dirpilot.api.v1.schemas.common import ErrorInfo


class OpenDirectoryRequest(BaseModel):
    """Choose a project root. An empty path counts as a dismissed picker."""

    path: str = ""


class WorkspaceStatus(BaseModel):
    state: str
    root: str | None = None
    write_denied: bool = False
    directory_access_available: bool = True
    active_file: str | None = None
    pending_proposals: int = 0


class TreeResponse(BaseModel):
    root: str | None = None
    tree: dict[str, Any] | None = None
    text: str | None = None
    error: ErrorInfo | None = None


class ActiveFileRequest(BaseModel):
    path: str = Field(..., min_length=1)


class ActiveFileResponse(BaseModel):
    name: str | None = None
    path: str | None = None
    content: str | None = None
    size: str | None = None
    language: str | None = None
    error: ErrorInfo | None = None


class ProjectInfoResponse(BaseModel):
    name: str | None = None
    type: str | None = None
    package: dict[str, Any] | None = None
    readme: str | None = None
    languages: dict[str, int] = {}
    config_files: list[str] = []
    error: ErrorInfo | None = None
