# Chat router: send, stream (SSE), stop.
# Created: 2026-10-12
#
# Every turn goes through the pipeline controller, which attaches any
# extracted file-op proposal to the AI message it came from.

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from dirpilot.api.deps import get_controller
from dirpilot.api.v1.schemas.chat import ChatRequest, ChatResponse
from dirpilot.pipeline import MutationPipelineController

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

# TurnUpdate.type -> SSE event name
_SSE_EVENTS = {
    "chunk": "chunk",
    "proposal": "proposal",
    "done": "stream_end",
    "cancelled": "stream_end",
    "error": "error",
}


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@router.post("/chat", response_model=ChatResponse)
async def chat_send(
    body: ChatRequest,
    controller: MutationPipelineController = Depends(get_controller),
):
    """Run a whole turn and return the finished AI message."""
    message = await controller.run_turn(body.content)
    if message is None:
        raise HTTPException(status_code=400, detail="Prompt is empty")
    return ChatResponse(
        message_id=message.id,
        content=message.content,
        proposal=message.proposal.to_dict() if message.proposal else None,
    )


@router.post("/chat/stream")
async def chat_stream(
    body: ChatRequest,
    controller: MutationPipelineController = Depends(get_controller),
):
    """Run a turn and stream it back as server-sent events."""
    if not body.content.strip():
        raise HTTPException(status_code=400, detail="Prompt is empty")

    async def _event_generator():
        started = False
        async for update in controller.send(body.content):
            if not started:
                started = True
                yield _sse("stream_start", {"message_id": update.message_id})
            data = update.to_dict()
            if update.type == "cancelled":
                data["cancelled"] = True
            yield _sse(_SSE_EVENTS[update.type], data)

    return StreamingResponse(
        _event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/chat/stop")
async def chat_stop(
    message_id: str = "",
    controller: MutationPipelineController = Depends(get_controller),
):
    """Cancel an in-flight reply (the current one if no id is given)."""
    if not controller.cancel_turn(message_id or None):
        raise HTTPException(status_code=404, detail="No active stream")
    return {"status": "ok", "message_id": message_id or None}
