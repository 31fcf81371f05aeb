"""POST/GET/DELETE /v1/session - sign in, current user, sign out"""

import logging

from fastapi import APIRouter, Depends, Response
from starlette.concurrency import run_in_threadpool

from bank_tracker.api.dependencies import get_registry, get_session_handle, get_token
from bank_tracker.api.sessions import SessionHandle, SessionRegistry
from bank_tracker.api.v1.schemas import LoginRequest, SessionResponse
from bank_tracker.domain.exceptions import AuthError
from bank_tracker.infrastructure.observability.metrics import sign_in_counter

router = APIRouter()


@router.post("/session", response_model=SessionResponse, status_code=201)
def sign_in(request_body: LoginRequest, registry: SessionRegistry = Depends(get_registry)):
    """
    Sign in and open a ledger session.

    Returns:
        Bearer token to send as `Authorization: Bearer <token>`
    """
    try:
        handle = registry.open(request_body.email, request_body.password)
    except AuthError:
        sign_in_counter.labels(outcome="rejected").inc()
        logging.warning("Sign-in rejected", extra={"email": request_body.email})
        raise

    sign_in_counter.labels(outcome="success").inc()
    identity = handle.store.identity
    return SessionResponse(token=handle.token, user_id=identity.user_id, email=identity.email)


@router.get("/session", response_model=SessionResponse)
def current_session(handle: SessionHandle = Depends(get_session_handle)):
    identity = handle.store.identity
    return SessionResponse(user_id=identity.user_id, email=identity.email)


@router.delete("/session", status_code=204)
async def sign_out(token: str = Depends(get_token), registry: SessionRegistry = Depends(get_registry)):
    handle = registry.close(token)
    if handle is not None:
        async with handle.lock:
            await run_in_threadpool(handle.store.sign_out)
    return Response(status_code=204)
