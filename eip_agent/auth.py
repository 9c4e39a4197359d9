"""
Caller identity — resolves the bearer token issued by the chat frontend's
identity provider into an AuthSession.

Resolution never raises: a missing, malformed, expired or badly signed token
simply resolves to None and the endpoint answers 401.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Header

from eip_agent.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    id: str


@dataclass(frozen=True)
class AuthSession:
    user: Optional[SessionUser] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None


def decode_token(token: str) -> Optional[AuthSession]:
    """Verify token and return its session, or None if it is not acceptable."""
    try:
        claims = jwt.decode(token, settings.auth_secret, algorithms=[settings.auth_algorithm])
    except jwt.PyJWTError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        return None

    user_id = claims.get("sub") or claims.get("user_id")
    if not user_id:
        logger.debug("Bearer token carries no user id claim")
        return None
    return AuthSession(user=SessionUser(id=str(user_id)))


async def get_auth_session(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Optional[AuthSession]:
    """FastAPI dependency: the caller's session, or None when unauthenticated."""
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return decode_token(token.strip())


class AuthenticationMissing(Exception):
    """Raised when a route requires a caller identity and none resolves."""


async def require_user(
    session: Optional[AuthSession] = Depends(get_auth_session),
) -> str:
    """
    FastAPI dependency: the caller's user id, or AuthenticationMissing.

    Route dependencies are solved before the request body is validated, so an
    unauthenticated caller is rejected even when its body is invalid.
    """
    user_id = session.user_id if session else None
    if not user_id:
        raise AuthenticationMissing()
    return user_id
