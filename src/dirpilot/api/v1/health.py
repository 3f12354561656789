# Health router: liveness summary and the audit log.
# Created: 2026-10-12

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from dirpilot import __version__
from dirpilot.api.deps import get_controller
from dirpilot.api.v1.schemas.health import HealthResponse
from dirpilot.pipeline import MutationPipelineController

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def get_health(controller: MutationPipelineController = Depends(get_controller)):
    """Report version, pipeline state and which services are available."""
    return HealthResponse(
        version=__version__,
        state=controller.state.value,
        directory_access_available=controller.directory_access_available,
        generator_configured=controller.generator is not None,
    )


@router.get("/audit")
async def get_audit_log(
    limit: int = Query(100, ge=1, le=1000),
    controller: MutationPipelineController = Depends(get_controller),
):
    """Most recent proposal decisions, newest first."""
    if controller.audit is None:
        return []
    return list(reversed(controller.audit.read_events(limit=limit)))
