"""
EIP Agent — FastAPI application entry point.
Lifespan: warm the Chroma collection → serve → close the Redis client.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from eip_agent import __version__
from eip_agent.auth import AuthenticationMissing, get_auth_session
from eip_agent.config import settings
from eip_agent.routers import chat, health
from eip_agent.services.errors import UpstreamError
from eip_agent.services.session_store import get_redis
from eip_agent.services.vector_index import get_collection

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.
    1. Warm up the Chroma collection (a failure is logged, not fatal).
    2. On shutdown, close the Redis connection pool.
    """
    logger.info("Starting EIP Agent (env=%s)", settings.app_env)

    try:
        await asyncio.to_thread(get_collection)
        logger.info("Chroma collection '%s' ready.", settings.chroma_collection)
    except Exception as exc:
        logger.error("Chroma warm-up failed: %s", exc)

    yield

    logger.info("Shutting down EIP Agent.")
    await get_redis().aclose()


app = FastAPI(
    title="EIP Agent",
    description="Streaming chat about Ethereum Improvement Proposals, with EIP retrieval and session history.",
    version=__version__,
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(chat.router)


# ── Exception handlers ───────────────────────────────────────────────────────

@app.exception_handler(AuthenticationMissing)
async def authentication_missing_handler(request: Request, exc: AuthenticationMissing) -> PlainTextResponse:
    """No caller identity: plain-text 401, nothing else has run."""
    return PlainTextResponse("Unauthorized", status_code=401)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> Response:
    """
    Report body validation errors only to identified callers.

    Malformed JSON is rejected before route dependencies run, so the identity
    check is repeated here to keep unauthenticated requests at 401.
    """
    session = await get_auth_session(request.headers.get("Authorization"))
    if session is None or not session.user_id:
        return PlainTextResponse("Unauthorized", status_code=401)
    return await request_validation_exception_handler(request, exc)


@app.exception_handler(UpstreamError)
async def upstream_exception_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """A hosted collaborator failed before the response started."""
    logger.exception("Upstream failure on %s %s", request.method, request.url)
    return JSONResponse(
        status_code=502,
        content={"detail": "Upstream service failure", "code": "UPSTREAM_FAILURE"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a machine-readable error for any unhandled exception."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "AGENT_UNAVAILABLE"},
    )
