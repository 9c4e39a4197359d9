"""
Shared fixtures. Every hosted collaborator is replaced:
  - Redis            → RecordingRedis (in-memory, records every call)
  - embeddings       → FakeEmbeddings recording the API key it was built with
  - vector index     → monkeypatched query_similar / build_retriever
  - chat model       → LangChain FakeListChatModel
"""

import asyncio
import os
import time

# Settings are read at import time; these must be set before eip_agent loads.
os.environ["GOOGLE_API_KEY"] = "test-google-key"
os.environ["AUTH_SECRET"] = "test-auth-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from langchain_core.documents import Document  # noqa: E402
from langchain_core.embeddings import Embeddings  # noqa: E402
from langchain_core.language_models import FakeListChatModel  # noqa: E402
from langchain_core.retrievers import BaseRetriever  # noqa: E402

from eip_agent.main import app  # noqa: E402
from eip_agent.services import orchestrator, session_store  # noqa: E402
from eip_agent.services.vector_index import VectorMatch  # noqa: E402

DEFAULT_REPLY = "EIP-1559 replaced the first-price gas auction with a base fee."


# ── Test doubles ─────────────────────────────────────────────

class RecordingRedis:
    def __init__(self):
        self.hashes: dict = {}
        self.sorted_sets: dict = {}
        self.calls: list = []
        self.fail_with: Exception | None = None

    async def hset(self, key, mapping):
        self.calls.append(("hset", key))
        if self.fail_with:
            raise self.fail_with
        self.hashes[key] = dict(mapping)
        return len(mapping)

    async def zadd(self, key, mapping):
        self.calls.append(("zadd", key))
        if self.fail_with:
            raise self.fail_with
        self.sorted_sets.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def ping(self):
        return True


class FakeEmbeddings(Embeddings):
    def __init__(self, api_key: str):
        self.api_key = api_key
        self.queries: list[str] = []

    def embed_documents(self, texts):
        return [self.embed_query(t) for t in texts]

    def embed_query(self, text):
        self.queries.append(text)
        return [float(len(text)), 0.5, 0.25]


class StaticRetriever(BaseRetriever):
    documents: list[Document]
    queries: list[str] = []

    def _get_relevant_documents(self, query, *, run_manager):
        self.queries.append(query)
        return self.documents


class Collaborators:
    """Records what the orchestrator asked of each collaborator."""

    def __init__(self):
        self.matches: list[VectorMatch] = []
        self.reply = DEFAULT_REPLY
        self.chat_keys: list[str] = []
        self.embedding_keys: list[str] = []
        self.embedding_clients: list[FakeEmbeddings] = []
        self.embedded: list[str] = []
        self.retrievers: list[StaticRetriever] = []
        self.retriever_embeddings: list[Embeddings] = []
        self.retriever_built_on_loop: list[bool] = []

    def build_embeddings(self, api_key):
        self.embedding_keys.append(api_key)
        client = FakeEmbeddings(api_key)
        self.embedding_clients.append(client)
        return client

    def build_chat_model(self, api_key):
        self.chat_keys.append(api_key)
        return FakeListChatModel(responses=[self.reply])

    async def embed_query(self, embeddings, text):
        self.embedded.append(text)
        return embeddings.embed_query(text)

    async def query_similar(self, embedding, top_k=None):
        return list(self.matches)

    def build_retriever(self, embeddings, top_k=None):
        self.retriever_built_on_loop.append(_on_event_loop())
        self.retriever_embeddings.append(embeddings)
        retriever = StaticRetriever(
            documents=[Document(page_content="EIP-1559: Fee market change for ETH 1.0 chain")]
        )
        self.retrievers.append(retriever)
        return retriever


def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


# ── Fixtures ─────────────────────────────────────────────────

@pytest.fixture
def fake_redis(monkeypatch):
    redis = RecordingRedis()
    monkeypatch.setattr(session_store, "get_redis", lambda: redis)
    return redis


@pytest.fixture
def collaborators(monkeypatch):
    fakes = Collaborators()
    monkeypatch.setattr(orchestrator, "build_embeddings", fakes.build_embeddings)
    monkeypatch.setattr(orchestrator, "build_chat_model", fakes.build_chat_model)
    monkeypatch.setattr(orchestrator, "embed_query", fakes.embed_query)
    monkeypatch.setattr(orchestrator, "query_similar", fakes.query_similar)
    monkeypatch.setattr(orchestrator, "build_retriever", fakes.build_retriever)
    return fakes


@pytest.fixture
def client():
    return TestClient(app)


def make_token(user_id: str | None = "user-42", secret: str = "test-auth-secret", ttl: int = 300) -> str:
    claims = {"iat": int(time.time()), "exp": int(time.time()) + ttl}
    if user_id is not None:
        claims["sub"] = user_id
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_header(user_id: str | None = "user-42") -> dict:
    if user_id is None:
        return {}
    return {"Authorization": f"Bearer {make_token(user_id)}"}
