"""
Orchestrator — picks the answer path for every chat turn.

  1. Embed the latest user message.
  2. Query the vector index for the top-K nearest EIP passages.
  3. Any match       → retrieval chain (retriever + chat model), streamed;
                       the retriever reuses the query vector from step 1.
                       No session is recorded.
     No match        → conversation chain (template + chat model), streamed;
                       the session is recorded once the stream completes.

There is no similarity threshold: a single match, however distant, selects
the retrieval path.

The first chunk of the chosen chain is pulled before orchestrate() returns,
so a failing chat model surfaces before the HTTP response has started.
Later failures propagate into the open stream. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional, Sequence

from eip_agent.schemas.chat import ChatMessage
from eip_agent.services.chains import build_conversation_chain, build_retrieval_chain
from eip_agent.services.errors import UpstreamError
from eip_agent.services.llm import (
    PrecomputedQueryEmbeddings,
    build_chat_model,
    build_embeddings,
    embed_query,
)
from eip_agent.services.session_store import build_session_record, save_session
from eip_agent.services.vector_index import build_retriever, query_similar
from eip_agent.utils.prompts import split_conversation

logger = logging.getLogger(__name__)


async def orchestrate(
    messages: Sequence[ChatMessage],
    *,
    user_id: str,
    api_key: str,
    session_id: Optional[str] = None,
) -> AsyncIterator[str]:
    """
    Route one conversation and return the stream of answer chunks.

    api_key is the effective model-API credential for this request; it is
    handed to the model clients explicitly.
    """
    chat_history, question = split_conversation(messages)

    embeddings = build_embeddings(api_key)
    query_vector = await embed_query(embeddings, question)
    matches = await query_similar(query_vector)

    model = build_chat_model(api_key)

    if matches:
        logger.info(
            "Retrieval path for user %s (%d match(es), best score=%s)",
            user_id,
            len(matches),
            matches[0].score,
        )
        # Building the Chroma store looks the collection up over the network.
        retriever_embeddings = PrecomputedQueryEmbeddings(embeddings, question, query_vector)
        try:
            retriever = await asyncio.to_thread(build_retriever, retriever_embeddings)
        except Exception as exc:
            logger.error("Retriever setup failed: %s", exc)
            raise UpstreamError("vector_index", str(exc)) from exc
        chain = build_retrieval_chain(retriever, model)
        return await _prime(
            chain.astream({"question": question, "chat_history": chat_history}),
            collaborator="retrieval_chain",
        )

    logger.info("Conversation path for user %s (no vector matches)", user_id)
    chain = build_conversation_chain(model)
    stream = await _prime(
        chain.astream({"chat_history": chat_history, "input": question}),
        collaborator="chat_model",
    )
    return _record_on_completion(stream, messages, user_id=user_id, session_id=session_id)


# ── Stream helpers ────────────────────────────────────────────────────────────


async def _prime(stream: AsyncIterator[str], collaborator: str) -> AsyncIterator[str]:
    """Pull the first chunk now; return a stream that replays it, then the rest."""
    try:
        first = await anext(stream)
    except StopAsyncIteration:
        logger.warning("%s produced an empty stream", collaborator)
        return _relay([], stream)
    except Exception as exc:
        logger.error("%s failed before the first chunk: %s", collaborator, exc)
        raise UpstreamError(collaborator, str(exc)) from exc
    return _relay([first], stream)


async def _relay(head: list[str], rest: AsyncIterator[str]) -> AsyncIterator[str]:
    for chunk in head:
        yield chunk
    if head:
        async for chunk in rest:
            yield chunk


async def _record_on_completion(
    stream: AsyncIterator[str],
    messages: Sequence[ChatMessage],
    *,
    user_id: str,
    session_id: Optional[str],
) -> AsyncIterator[str]:
    """Relay the stream, then persist the exchange with the full reply."""
    parts: list[str] = []
    async for chunk in stream:
        parts.append(chunk)
        yield chunk

    record = build_session_record(
        messages,
        "".join(parts),
        user_id=user_id,
        session_id=session_id,
    )
    await save_session(record)
