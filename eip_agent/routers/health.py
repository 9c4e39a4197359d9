"""Health check endpoints — used by load balancers and uptime monitoring."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from eip_agent import __version__
from eip_agent.services.session_store import check_session_store
from eip_agent.services.vector_index import check_vector_index

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Liveness check — returns 200 if the process is running."""
    return {"status": "ok", "version": __version__}


@router.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness check — checks the session store and the vector index.
    Returns 200 with {"kv_store": "ok", "vector_index": "ok"} when fully ready,
    or 503 with the failing component marked "error".
    """
    kv_ok = await check_session_store()
    vector_ok = await asyncio.to_thread(check_vector_index)

    status = {
        "kv_store": "ok" if kv_ok else "error",
        "vector_index": "ok" if vector_ok else "error",
    }
    if not (kv_ok and vector_ok):
        logger.warning("Readiness check failed: %s", status)

    http_status = 200 if kv_ok and vector_ok else 503
    return JSONResponse(content=status, status_code=http_status)
