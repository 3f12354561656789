# Proposal schemas.
# Created: 2026-10-12

from __future__ import annotations

from pydantic import BaseModel

from dirpilot.api.v1.schemas.common import ErrorInfo


class ProposalActionResponse(BaseModel):
    message_id: str
    action: str  # "applied", "failed" or "rejected"
    path: str
    error: ErrorInfo | None = None


class PendingProposalsResponse(BaseModel):
    proposals: list[dict] = []
