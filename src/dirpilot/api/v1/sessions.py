# Sessions router: list, create, load, delete, export.
# Created: 2026-10-12

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from dirpilot.api.deps import get_controller
from dirpilot.api.v1.schemas.common import StatusResponse
from dirpilot.api.v1.schemas.sessions import (
    CreateSessionRequest,
    SessionListResponse,
    SessionSummary,
)
from dirpilot.conversation.export import (
    export_filename,
    session_to_json,
    session_to_markdown,
    sessions_to_json,
)
from dirpilot.pipeline import MutationPipelineController

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sessions"])


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    limit: int = Query(50, ge=1, le=500),
    controller: MutationPipelineController = Depends(get_controller),
):
    """Sessions, most recently updated first."""
    current = await controller.start()
    sessions = await controller.conversations.list_sessions()
    return SessionListResponse(
        sessions=[SessionSummary.from_session(s) for s in sessions[:limit]],
        total=len(sessions),
        current_session_id=current.id,
    )


@router.get("/sessions/export")
async def export_all_sessions(controller: MutationPipelineController = Depends(get_controller)):
    """Download every stored session as one JSON backup."""
    await controller.start()
    sessions = await controller.conversations.list_sessions()
    filename = export_filename("dirpilot-sessions", "json")
    return Response(
        content=sessions_to_json(sessions),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/sessions", response_model=SessionSummary)
async def create_session(
    body: CreateSessionRequest,
    controller: MutationPipelineController = Depends(get_controller),
):
    """Start a new session and make it current."""
    session = await controller.new_session(body.name)
    return SessionSummary.from_session(session)


@router.post("/sessions/{session_id}/load", response_model=SessionSummary)
async def load_session(session_id: str, controller: MutationPipelineController = Depends(get_controller)):
    session = await controller.load_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionSummary.from_session(session)


@router.post("/sessions/current/clear", response_model=SessionSummary)
async def clear_current_session(controller: MutationPipelineController = Depends(get_controller)):
    """Remove every message from the current session."""
    return SessionSummary.from_session(await controller.clear_session())


@router.delete("/sessions/{session_id}", response_model=StatusResponse)
async def delete_session(session_id: str, controller: MutationPipelineController = Depends(get_controller)):
    if not await controller.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return StatusResponse()


@router.get("/sessions/{session_id}/export")
async def export_session(
    session_id: str,
    format: str = Query("md"),
    controller: MutationPipelineController = Depends(get_controller),
):
    """Export a session as a downloadable Markdown or JSON file."""
    if format not in ("json", "md"):
        raise HTTPException(status_code=400, detail="Format must be 'json' or 'md'")

    session = await controller.conversations.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")

    if format == "json":
        body, media_type = session_to_json(session), "application/json"
    else:
        body, media_type = session_to_markdown(session), "text/markdown"
    filename = export_filename(session.name, format)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
