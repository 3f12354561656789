# Messages router: reading and editing the current session's conversation log.
# Created: 2026-10-12

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from dirpilot.api.deps import get_controller
from dirpilot.api.v1.schemas.chat import EditMessageRequest, MessageListResponse
from dirpilot.api.v1.schemas.common import StatusResponse
from dirpilot.pipeline import MessageNotFoundError, MutationPipelineController

router = APIRouter(tags=["Messages"])


@router.get("/messages", response_model=MessageListResponse)
async def list_messages(controller: MutationPipelineController = Depends(get_controller)):
    session = await controller.start()
    return MessageListResponse(
        session_id=session.id,
        messages=[m.to_dict() for m in session.messages],
        total=len(session.messages),
    )


@router.get("/messages/search", response_model=MessageListResponse)
async def search_messages(
    q: str = Query(""),
    controller: MutationPipelineController = Depends(get_controller),
):
    """Case-insensitive search over content and proposal paths."""
    session = await controller.start()
    found = await controller.search_messages(q)
    return MessageListResponse(
        session_id=session.id,
        messages=[m.to_dict() for m in found],
        total=len(found),
    )


@router.get("/messages/{message_id}")
async def get_message(message_id: str, controller: MutationPipelineController = Depends(get_controller)):
    session = await controller.start()
    message = session.get_message(message_id)
    if message is None:
        raise HTTPException(status_code=404, detail=f"Message not found: {message_id}")
    return message.to_dict()


@router.patch("/messages/{message_id}")
async def edit_message(
    message_id: str,
    body: EditMessageRequest,
    controller: MutationPipelineController = Depends(get_controller),
):
    """Replace a message's text and mark it edited."""
    try:
        message = await controller.edit_message(message_id, body.content)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail=f"Message not found: {message_id}")
    return message.to_dict()


@router.delete("/messages/{message_id}", response_model=StatusResponse)
async def delete_message(message_id: str, controller: MutationPipelineController = Depends(get_controller)):
    try:
        await controller.delete_message(message_id)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail=f"Message not found: {message_id}")
    return StatusResponse()


@router.post("/messages/{message_id}/favorite")
async def toggle_favorite(message_id: str, controller: MutationPipelineController = Depends(get_controller)):
    """Flip the favorite flag."""
    try:
        message = await controller.toggle_favorite(message_id)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail=f"Message not found: {message_id}")
    return message.to_dict()
