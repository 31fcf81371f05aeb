"""Dependency injection for FastAPI endpoints"""

from typing import AsyncIterator, Optional

from fastapi import Depends, Header, Request

from bank_tracker.api.sessions import SessionHandle, SessionRegistry
from bank_tracker.domain.exceptions import AuthorizationError
from bank_tracker.domain.ledger import LedgerStore


def get_registry(request: Request) -> SessionRegistry:
    """Provide the app's session registry"""
    return request.app.state.sessions


def get_token(authorization: Optional[str] = Header(default=None)) -> str:
    """Read the bearer token from the Authorization header"""
    if not authorization:
        raise AuthorizationError("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthorizationError("Authorization header must be 'Bearer <token>'")
    return token.strip()


def get_session_handle(
    request: Request,
    token: str = Depends(get_token),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionHandle:
    handle = registry.get(token)
    request.state.user_id = handle.user_id
    return handle


async def get_store(handle: SessionHandle = Depends(get_session_handle)) -> AsyncIterator[LedgerStore]:
    """
    Provide the caller's ledger, holding its lock for the whole request.

    The lock is awaited on the event loop, so requests queued behind it do
    not tie up worker threads the lock holder needs to finish.
    """
    async with handle.lock:
        yield handle.store
