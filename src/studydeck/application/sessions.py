"""
In-memory registry of the study sessions served over HTTP.

Sessions are dropped when a client deletes them, after sitting idle for too
long, or shortly after they finish. The registry is also capped in size; when
full, the least recently used session is evicted.
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from studydeck.domain.constants import FINISHED_SESSION_TTL, MAX_SESSIONS, SESSION_IDLE_TTL
from studydeck.domain.models import SessionPhase

from .ids import generate_session_id
from .scheduler import StudyScheduler

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(
        self,
        idle_ttl: float = SESSION_IDLE_TTL,
        finished_ttl: float = FINISHED_SESSION_TTL,
        max_sessions: int = MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._idle_ttl = idle_ttl
        self._finished_ttl = finished_ttl
        self._max_sessions = max_sessions
        self._clock = clock
        # session id -> (scheduler, last touched); least recently used first
        self._sessions: OrderedDict[str, tuple[StudyScheduler, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def add(self, scheduler: StudyScheduler) -> str:
        """Register a started session and return its new id."""
        self.prune()
        while len(self._sessions) >= self._max_sessions:
            oldest_id = next(iter(self._sessions))
            logger.info(f"Session limit ({self._max_sessions}) reached; evicting {oldest_id}")
            self._evict(oldest_id)

        session_id = generate_session_id()
        self._sessions[session_id] = (scheduler, self._clock())
        return session_id

    def get(self, session_id: str) -> StudyScheduler | None:
        """Return the session and mark it as used, or None if unknown or expired."""
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        scheduler, touched = entry
        now = self._clock()
        if self._expired(scheduler, now - touched):
            self._evict(session_id)
            return None
        self._sessions[session_id] = (scheduler, now)
        self._sessions.move_to_end(session_id)
        return scheduler

    def pop(self, session_id: str) -> StudyScheduler | None:
        entry = self._sessions.pop(session_id, None)
        return entry[0] if entry else None

    def prune(self) -> int:
        """Evict every expired session. Returns how many were dropped."""
        now = self._clock()
        expired = [
            session_id
            for session_id, (scheduler, touched) in self._sessions.items()
            if self._expired(scheduler, now - touched)
        ]
        for session_id in expired:
            self._evict(session_id)
        if expired:
            logger.info(f"Evicted {len(expired)} expired session(s)")
        return len(expired)

    def clear(self) -> None:
        for session_id in list(self._sessions):
            self._evict(session_id)

    def _expired(self, scheduler: StudyScheduler, idle: float) -> bool:
        if scheduler.phase is SessionPhase.FINISHED:
            return idle > self._finished_ttl
        return idle > self._idle_ttl

    def _evict(self, session_id: str) -> None:
        scheduler, _ = self._sessions.pop(session_id)
        scheduler.exit()
