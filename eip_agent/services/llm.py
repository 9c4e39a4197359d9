"""
Model clients — Gemini chat and embedding models via langchain-google-genai.

Clients are built per request with an explicit API key. The configured key
is the default; a request's previewToken replaces it for that request only.
Nothing here mutates shared configuration, so concurrent requests never see
each other's credentials.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings

from eip_agent.config import settings
from eip_agent.services.errors import UpstreamError

logger = logging.getLogger(__name__)


def resolve_api_key(preview_token: Optional[str]) -> str:
    """Return the model-API key to use for one request."""
    if preview_token:
        logger.debug("Using request-scoped preview token for model calls.")
        return preview_token
    return settings.google_api_key


def build_chat_model(api_key: str) -> BaseChatModel:
    """Return a streaming Gemini chat model bound to api_key."""
    return ChatGoogleGenerativeAI(
        model=settings.chat_model,
        temperature=settings.chat_temperature,
        google_api_key=api_key,
    )


def build_embeddings(api_key: str) -> Embeddings:
    """Return a Gemini embedding client bound to api_key."""
    return GoogleGenerativeAIEmbeddings(
        model=settings.embedding_model,
        google_api_key=api_key,
        task_type="retrieval_query",
    )


async def embed_query(embeddings: Embeddings, text: str) -> list[float]:
    """
    Embed a single query text.

    Runs the blocking client in a worker thread. Any client failure is
    re-raised as UpstreamError.
    """
    try:
        return await asyncio.to_thread(embeddings.embed_query, text)
    except Exception as exc:
        logger.error("Query embedding failed: %s", exc)
        raise UpstreamError("embeddings", str(exc)) from exc


class PrecomputedQueryEmbeddings(Embeddings):
    """
    Embeddings that answer one known query from a vector computed earlier.

    The retriever embeds its query again; handing it this wrapper reuses the
    vector the orchestrator already paid for. Any other text goes to the
    wrapped client.
    """

    def __init__(self, embeddings: Embeddings, text: str, vector: list[float]) -> None:
        self._embeddings = embeddings
        self._text = text
        self._vector = list(vector)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return self._embeddings.embed_documents(texts)

    def embed_query(self, text: str) -> list[float]:
        if text == self._text:
            return list(self._vector)
        return self._embeddings.embed_query(text)
