# Shared FastAPI dependencies for the API layer.
# Created: 2026-10-12

from __future__ import annotations

from fastapi import HTTPException, Request

from dirpilot.pipeline import MutationPipelineController


def get_controller(request: Request) -> MutationPipelineController:
    """Return the pipeline controller the app was built with.

    Usage::

        @router.get("/workspace")
        async def status(controller: MutationPipelineController = Depends(get_controller)): ...
    """
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Workspace controller is not initialized")
    return controller
