"""
Session store — persists chat sessions to Redis.

Layout (read back by the chat frontend, never by this service):
  chat:{id}              hash holding every SessionRecord field
  user:chat:{userId}     sorted set, member "chat:{id}", score createdAt
"""

from __future__ import annotations

import logging
import time
import uuid
from functools import lru_cache
from typing import Optional, Sequence

from redis.asyncio import Redis

from eip_agent.config import settings
from eip_agent.schemas.chat import ChatMessage
from eip_agent.schemas.session import SessionRecord

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 100


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    """Return the process-wide async Redis client (connects lazily)."""
    return Redis.from_url(settings.redis_url, decode_responses=True)


def new_session_id() -> str:
    return uuid.uuid4().hex


def build_session_record(
    messages: Sequence[ChatMessage],
    completion: str,
    user_id: str,
    session_id: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> SessionRecord:
    """
    Build the record for a finished exchange.

    The stored conversation is the inbound messages followed by exactly one
    assistant message carrying the generated completion.
    """
    if not messages:
        raise ValueError("cannot record an empty conversation")

    record_id = session_id or new_session_id()
    created_at = now_ms if now_ms is not None else int(time.time() * 1000)
    return SessionRecord(
        id=record_id,
        title=messages[0].content[:TITLE_MAX_CHARS],
        user_id=user_id,
        created_at=created_at,
        path=f"/chat/{record_id}",
        messages=[*messages, ChatMessage(role="assistant", content=completion)],
    )


async def save_session(record: SessionRecord, client: Optional[Redis] = None) -> None:
    """
    Write the record hash and index it under its owner.

    An existing record with the same id is overwritten. Failures are logged
    and re-raised.
    """
    redis = client if client is not None else get_redis()
    try:
        await redis.hset(record.key, mapping=record.to_hash())
        await redis.zadd(record.user_index_key, {record.key: record.created_at})
    except Exception as exc:
        logger.error("Failed to save session %s for user %s: %s", record.id, record.user_id, exc)
        raise
    logger.info("Saved session %s for user %s", record.id, record.user_id)


async def check_session_store() -> bool:
    """Return True if Redis answers PING."""
    try:
        return bool(await get_redis().ping())
    except Exception as exc:
        logger.warning("Session store ping failed: %s", exc)
        return False
