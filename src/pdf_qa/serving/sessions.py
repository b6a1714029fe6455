"""In-memory session store owning the lifetime of conversation histories."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable
from uuid import uuid4

from pdf_qa.agent.history import ConversationHistory

logger = logging.getLogger(__name__)


class SessionStore:
    """Thread-safe map of session id → :class:`ConversationHistory`.

    Sessions idle for longer than *ttl_seconds* are purged on access, and
    the least-recently-used session is dropped once *max_sessions* is
    exceeded.  State is process-local and lost on restart.
    """

    def __init__(
        self,
        max_sessions: int = 1000,
        ttl_seconds: float = 3600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_sessions = max_sessions
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: OrderedDict[str, tuple[ConversationHistory, float]] = OrderedDict()

    def get_or_create(self, session_id: str | None = None) -> tuple[str, ConversationHistory]:
        """Return ``(session_id, history)``, creating a session when needed.

        An unknown or expired *session_id* starts a fresh session under a
        newly generated id.
        """
        with self._lock:
            self._purge_expired_locked()
            now = self._clock()
            if session_id is not None and session_id in self._sessions:
                history, _ = self._sessions.pop(session_id)
                self._sessions[session_id] = (history, now)
                return session_id, history

            new_id = uuid4().hex
            history = ConversationHistory()
            self._sessions[new_id] = (history, now)
            while len(self._sessions) > self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted least-recently-used session %s", evicted)
            return new_id, history

    def evict(self, session_id: str) -> bool:
        """Drop *session_id*; return ``True`` if it existed."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        """Drop idle sessions and return how many were removed."""
        with self._lock:
            return self._purge_expired_locked()

    def _purge_expired_locked(self) -> int:
        cutoff = self._clock() - self.ttl_seconds
        expired = [sid for sid, (_, seen) in self._sessions.items() if seen < cutoff]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Purged %d expired session(s)", len(expired))
        return len(expired)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
