"""
Queue-and-flush wrapper around a ReviewLogger.

Events are sent in the order they were rated. When the inner logger fails,
the event stays queued and is retried, ahead of newer events, on the next
send or on an explicit flush(). Re-sending is safe because the store upserts
by event_id.
"""

import asyncio
import logging
from collections import deque

from studydeck.domain.models import ReviewEvent
from studydeck.domain.ports import ReviewLogger

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 1000


class QueuedReviewLogger(ReviewLogger):
    def __init__(self, inner: ReviewLogger, max_pending: int = DEFAULT_MAX_PENDING):
        self._inner = inner
        self._max_pending = max_pending
        self._pending: deque[ReviewEvent] = deque()
        self._lock = asyncio.Lock()

    @property
    def pending(self) -> list[ReviewEvent]:
        return list(self._pending)

    async def log_review(self, event: ReviewEvent) -> None:
        # The head of the queue may be mid-send inside flush().
        async with self._lock:
            if len(self._pending) >= self._max_pending:
                dropped = self._pending.popleft()
                logger.warning(
                    f"Review queue full ({self._max_pending}); "
                    f"dropping oldest event {dropped.event_id}"
                )
            self._pending.append(event)
        await self.flush()

    async def flush(self) -> int:
        """Send queued events until one fails. Returns how many were delivered."""
        delivered = 0
        async with self._lock:
            while self._pending:
                event = self._pending[0]
                try:
                    await self._inner.log_review(event)
                except Exception as e:
                    logger.warning(
                        f"Review log unavailable, {len(self._pending)} event(s) queued: {e}"
                    )
                    break
                self._pending.popleft()
                delivered += 1
        return delivered
