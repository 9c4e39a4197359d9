"""
Chat endpoint — called by the chat frontend with the caller's bearer token.
Returns the model's answer as a plain-text stream.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from eip_agent.auth import require_user
from eip_agent.schemas.chat import ConversationPayload
from eip_agent.services.llm import resolve_api_key
from eip_agent.services.orchestrator import orchestrate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=None)
async def chat(
    body: ConversationPayload,
    user_id: str = Depends(require_user),
) -> StreamingResponse:
    """
    Answer the latest message of a conversation and stream the reply.

    Unauthenticated callers get 401 before any model call or store write
    (raised by require_user, rendered by the app's exception handler).
    A previewToken in the body replaces the model-API key for this request only.
    """
    stream = await orchestrate(
        body.messages,
        user_id=user_id,
        api_key=resolve_api_key(body.preview_token),
        session_id=body.id,
    )

    return StreamingResponse(
        stream,
        media_type="text/plain; charset=utf-8",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )
