"""Pydantic schemas for the chat endpoint."""

from __future__ import annotations

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """A single turn in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ConversationPayload(BaseModel):
    """Body for POST /api/chat — sent by the chat frontend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    messages: list[ChatMessage] = Field(..., min_length=1)
    id: Optional[str] = None
    preview_token: Optional[str] = Field(None, alias="previewToken")
