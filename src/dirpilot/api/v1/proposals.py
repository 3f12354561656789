# Proposals router: list, accept and reject file-op proposals.
# Created: 2026-10-12

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from dirpilot.api.deps import get_controller
from dirpilot.api.v1.schemas.common import ErrorInfo
from dirpilot.api.v1.schemas.proposals import PendingProposalsResponse, ProposalActionResponse
from dirpilot.pipeline import MutationPipelineController, ProposalNotFoundError
from dirpilot.proposals.executor import Applied

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proposals"])


@router.get("/proposals", response_model=PendingProposalsResponse)
async def list_pending(controller: MutationPipelineController = Depends(get_controller)):
    """Proposals still waiting for a decision."""
    await controller.start()
    return PendingProposalsResponse(proposals=[p.to_dict() for p in controller.pending_proposals()])


@router.post("/proposals/{message_id}/accept", response_model=ProposalActionResponse)
async def accept_proposal(message_id: str, controller: MutationPipelineController = Depends(get_controller)):
    """Write the proposed change to disk."""
    await controller.start()
    try:
        outcome = await controller.accept(message_id)
    except ProposalNotFoundError:
        raise HTTPException(status_code=404, detail="No pending proposal for this message")

    if isinstance(outcome, Applied):
        return ProposalActionResponse(message_id=message_id, action="applied", path=outcome.path)
    return ProposalActionResponse(
        message_id=message_id,
        action="failed",
        path=outcome.path or "",
        error=ErrorInfo.from_failure(outcome),
    )


@router.post("/proposals/{message_id}/reject", response_model=ProposalActionResponse)
async def reject_proposal(message_id: str, controller: MutationPipelineController = Depends(get_controller)):
    """Discard the proposal. Nothing is written."""
    await controller.start()
    try:
        proposal = await controller.reject(message_id)
    except ProposalNotFoundError:
        raise HTTPException(status_code=404, detail="No pending proposal for this message")
    return ProposalActionResponse(
        message_id=message_id, action="rejected", path=proposal.instruction.file_path
    )
