"""
Prompt templates and history formatting for every chat model call.
All prompt strings live here — no hardcoded prompts elsewhere in the codebase.
"""

from __future__ import annotations

from typing import Sequence

from eip_agent.schemas.chat import ChatMessage


# ── Templates ────────────────────────────────────────────────────────────────

_PERSONA = """You are a Senior Blockchain Developer who has great knowledge about Ethereum Improvement Proposals.
You are helping people about Ethereum, Solidity, EIP's etc. If you don't have the asked information, just say the truth."""

# Slots: {chat_history}, {input}
CONVERSATION_TEMPLATE = _PERSONA + """

Current conversation:
{chat_history}

User: {input}
AI:"""

# Slots: {context}, {chat_history}, {question}
RETRIEVAL_TEMPLATE = _PERSONA + """
Use the following pieces of EIP context to answer the question at the end.

Context:
{context}

Current conversation:
{chat_history}

User: {question}
AI:"""


# ── History formatting ───────────────────────────────────────────────────────


def format_message(message: ChatMessage) -> str:
    """Render one turn as ``"{role}: {content}"``."""
    return f"{message.role}: {message.content}"


def format_chat_history(messages: Sequence[ChatMessage]) -> str:
    """Newline-join the rendered turns, preserving their order."""
    return "\n".join(format_message(m) for m in messages)


def split_conversation(messages: Sequence[ChatMessage]) -> tuple[str, str]:
    """
    Split a conversation into (rendered prior turns, latest message content).

    The last message is the current input; everything before it is history.
    Raises ValueError on an empty conversation.
    """
    if not messages:
        raise ValueError("conversation must contain at least one message")
    return format_chat_history(messages[:-1]), messages[-1].content
