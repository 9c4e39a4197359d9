"""
Vector index service — Chroma collection holding embedded EIP passages.

Flow:
  1. Connect once per process (Chroma Cloud when CHROMA_API_KEY is set,
     otherwise a Chroma server at CHROMA_HOST:CHROMA_PORT).
  2. query_similar() → top-K nearest vectors with metadata and raw values.
  3. build_retriever() → LangChain retriever over the same collection,
     bound to the request's embedding client.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

import chromadb
from langchain_chroma import Chroma
from langchain_core.embeddings import Embeddings
from langchain_core.retrievers import BaseRetriever

from eip_agent.config import settings
from eip_agent.services.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class VectorMatch:
    """One nearest-neighbour hit. score is the index's distance (lower is closer)."""

    id: str
    score: Optional[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    values: Optional[list[float]] = None


@lru_cache(maxsize=1)
def get_vector_client() -> chromadb.ClientAPI:
    """Return the process-wide Chroma client."""
    if settings.chroma_api_key:
        logger.info(
            "Connecting to Chroma Cloud (tenant=%s, database=%s)",
            settings.chroma_tenant,
            settings.chroma_database,
        )
        return chromadb.CloudClient(
            tenant=settings.chroma_tenant,
            database=settings.chroma_database,
            api_key=settings.chroma_api_key,
        )

    logger.info("Connecting to Chroma server at %s:%d", settings.chroma_host, settings.chroma_port)
    kwargs: dict[str, Any] = {}
    if settings.chroma_tenant:
        kwargs["tenant"] = settings.chroma_tenant
    if settings.chroma_database:
        kwargs["database"] = settings.chroma_database
    return chromadb.HttpClient(host=settings.chroma_host, port=settings.chroma_port, **kwargs)


def get_collection() -> chromadb.Collection:
    """
    Return the EIP collection, creating it if missing.

    No embedding function is attached: queries always pass precomputed vectors.
    """
    return get_vector_client().get_or_create_collection(
        name=settings.chroma_collection,
        embedding_function=None,
    )


def _first(results: dict[str, Any], key: str, size: int) -> list[Any]:
    """Return the first query's column from a Chroma result, padded with None."""
    column = results.get(key)
    if column is None or len(column) == 0 or column[0] is None:
        return [None] * size
    return list(column[0])


def _query(embedding: list[float], top_k: int) -> list[VectorMatch]:
    collection = get_collection()
    count = collection.count()
    if count == 0:
        return []

    results = collection.query(
        query_embeddings=[embedding],
        n_results=min(top_k, count),
        include=["metadatas", "embeddings", "distances"],
    )
    ids = _first(results, "ids", 0)
    distances = _first(results, "distances", len(ids))
    metadatas = _first(results, "metadatas", len(ids))
    vectors = _first(results, "embeddings", len(ids))

    return [
        VectorMatch(
            id=str(match_id),
            score=float(distance) if distance is not None else None,
            metadata=dict(metadata or {}),
            values=[float(v) for v in vector] if vector is not None else None,
        )
        for match_id, distance, metadata, vector in zip(ids, distances, metadatas, vectors)
    ]


async def query_similar(embedding: list[float], top_k: Optional[int] = None) -> list[VectorMatch]:
    """
    Return up to top_k nearest vectors (default RETRIEVAL_TOP_K).

    An empty collection returns [] without querying. Client failures are
    re-raised as UpstreamError.
    """
    k = top_k or settings.retrieval_top_k
    try:
        matches = await asyncio.to_thread(_query, embedding, k)
    except Exception as exc:
        logger.error("Vector query failed: %s", exc)
        raise UpstreamError("vector_index", str(exc)) from exc

    logger.debug("Vector query returned %d match(es) (top_k=%d)", len(matches), k)
    return matches


def build_retriever(embeddings: Embeddings, top_k: Optional[int] = None) -> BaseRetriever:
    """Return a similarity retriever over the EIP collection."""
    store = Chroma(
        client=get_vector_client(),
        collection_name=settings.chroma_collection,
        embedding_function=embeddings,
    )
    return store.as_retriever(search_kwargs={"k": top_k or settings.retrieval_top_k})


def check_vector_index() -> bool:
    """Return True if the Chroma server answers a heartbeat."""
    try:
        get_vector_client().heartbeat()
        return True
    except Exception as exc:
        logger.warning("Vector index heartbeat failed: %s", exc)
        return False
