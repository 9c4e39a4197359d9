"""Pydantic schemas package."""

from eip_agent.schemas.chat import ChatMessage, ConversationPayload
from eip_agent.schemas.session import SessionRecord

__all__ = [
    "ChatMessage", "ConversationPayload",
    "SessionRecord",
]
