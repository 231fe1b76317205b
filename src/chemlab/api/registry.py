"""In-process registry of live experiment sessions."""

from __future__ import annotations

import logging
import time
from typing import Callable
from uuid import uuid4

from chemlab.catalog import DEFAULT_CATALOG, ReactionCatalog
from chemlab.errors import NotFoundError
from chemlab.session import SessionStateMachine

logger = logging.getLogger(__name__)


class _SessionEntry:
    """Live session with the time it was last touched."""

    def __init__(self, session: SessionStateMachine, now: float) -> None:
        self.session = session
        self.last_used = now


class SessionRegistry:
    """Sessions keyed by a random id; nothing here survives a restart.

    Sessions idle for longer than ``idle_seconds`` are closed and dropped on
    the next ``create`` or ``get``. When ``max_sessions`` is reached, creating
    a session closes the least recently used one.
    """

    def __init__(
        self,
        catalog: ReactionCatalog = DEFAULT_CATALOG,
        settle_seconds: float | None = None,
        idle_seconds: float | None = None,
        max_sessions: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.catalog = catalog
        self.settle_seconds = settle_seconds
        self.idle_seconds = idle_seconds
        self.max_sessions = max_sessions
        self.clock = clock
        self.sessions: dict[str, _SessionEntry] = {}

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, sid: object) -> bool:
        return sid in self.sessions

    def create(self, **kwargs) -> tuple[str, SessionStateMachine]:
        self.evict_expired()
        if self.settle_seconds is not None:
            kwargs.setdefault("settle_seconds", self.settle_seconds)
        session = SessionStateMachine(catalog=self.catalog, **kwargs)

        if self.max_sessions is not None:
            # The dict is kept in least to most recently used order.
            while self.sessions and len(self.sessions) >= self.max_sessions:
                self._drop(next(iter(self.sessions)), "evicted")

        sid = str(uuid4())
        self.sessions[sid] = _SessionEntry(session, self.clock())
        logger.info("Session %s created", sid)
        return sid, session

    def get(self, sid: str) -> SessionStateMachine:
        self.evict_expired()
        entry = self.sessions.pop(sid, None)
        if entry is None:
            raise NotFoundError(f"Session {sid} not found")
        entry.last_used = self.clock()
        self.sessions[sid] = entry
        return entry.session

    def close(self, sid: str) -> None:
        if sid not in self.sessions:
            raise NotFoundError(f"Session {sid} not found")
        self._drop(sid, "closed")

    def close_all(self) -> None:
        for sid in list(self.sessions):
            self._drop(sid, "closed")

    def evict_expired(self) -> int:
        """Close sessions idle past ``idle_seconds``; returns how many went."""
        if self.idle_seconds is None:
            return 0
        cutoff = self.clock() - self.idle_seconds
        expired = [sid for sid, entry in self.sessions.items() if entry.last_used < cutoff]
        for sid in expired:
            self._drop(sid, "expired")
        return len(expired)

    def _drop(self, sid: str, reason: str) -> None:
        entry = self.sessions.pop(sid)
        entry.session.close()
        logger.info("Session %s %s", sid, reason)
