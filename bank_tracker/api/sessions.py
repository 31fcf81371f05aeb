"""Signed-in sessions served by the HTTP surface"""

import asyncio
import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from bank_tracker.domain.exceptions import AuthorizationError
from bank_tracker.domain.gateway import PersistenceGateway
from bank_tracker.domain.ledger import LedgerStore


@dataclass
class SessionHandle:
    """One user's ledger plus the lock that serializes its commands"""

    token: str
    user_id: str
    store: LedgerStore
    last_used: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionRegistry:
    """
    Maps bearer tokens to signed-in ledger stores.

    A session unused for `idle_timeout` seconds is dropped on the next
    lookup or sign-in. Each user keeps at most `max_per_user` sessions;
    signing in once more evicts that user's least recently used one.
    """

    def __init__(
        self,
        gateway_factory: Callable[[], PersistenceGateway],
        idle_timeout: float = 1800,
        max_per_user: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._gateway_factory = gateway_factory
        self._idle_timeout = idle_timeout
        self._max_per_user = max(1, max_per_user)
        self._clock = clock
        self._sessions: Dict[str, SessionHandle] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def open(self, email: str, password: str) -> SessionHandle:
        """Sign in with a fresh gateway and store; raises AuthError on bad credentials"""
        store = LedgerStore(self._gateway_factory())
        identity = store.sign_in(email, password)
        handle = SessionHandle(
            token=secrets.token_urlsafe(32),
            user_id=identity.user_id,
            store=store,
            last_used=self._clock(),
        )
        with self._lock:
            self._purge_expired()
            own = sorted(
                (h for h in self._sessions.values() if h.user_id == handle.user_id),
                key=lambda h: h.last_used,
            )
            for stale in own[: len(own) - self._max_per_user + 1]:
                del self._sessions[stale.token]
            self._sessions[handle.token] = handle
        return handle

    def get(self, token: str) -> SessionHandle:
        now = self._clock()
        with self._lock:
            handle = self._sessions.get(token)
            if handle is not None and self._expired(handle, now):
                del self._sessions[token]
                handle = None
            if handle is not None:
                handle.last_used = now
        if handle is None:
            raise AuthorizationError("Session expired or unknown; sign in again")
        return handle

    def close(self, token: str) -> Optional[SessionHandle]:
        """Forget the session; the caller signs its store out"""
        with self._lock:
            return self._sessions.pop(token, None)

    def _expired(self, handle: SessionHandle, now: float) -> bool:
        return now - handle.last_used > self._idle_timeout

    def _purge_expired(self) -> None:
        now = self._clock()
        for token in [t for t, h in self._sessions.items() if self._expired(h, now)]:
            del self._sessions[token]
