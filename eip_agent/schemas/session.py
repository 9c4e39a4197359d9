"""Pydantic schema for a persisted chat session."""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field

from eip_agent.schemas.chat import ChatMessage


class SessionRecord(BaseModel):
    """
    A conversation as written to the key-value store.

    Field names follow the camelCase keys the chat frontend reads back
    (``userId``, ``createdAt``).
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    user_id: str = Field(..., alias="userId")
    created_at: int = Field(..., alias="createdAt")   # epoch millis
    path: str
    messages: list[ChatMessage]

    @property
    def key(self) -> str:
        return f"chat:{self.id}"

    @property
    def user_index_key(self) -> str:
        return f"user:chat:{self.user_id}"

    def to_hash(self) -> dict[str, str | int]:
        """Flatten the record into a Redis hash mapping (messages as JSON)."""
        return {
            "id": self.id,
            "title": self.title,
            "userId": self.user_id,
            "createdAt": self.created_at,
            "path": self.path,
            "messages": json.dumps([m.model_dump() for m in self.messages]),
        }
