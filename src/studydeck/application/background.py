"""
Dispatch-and-detach runner for fire-and-forget I/O.

Callers hand over a coroutine and return immediately. The coroutine runs as an
asyncio task bounded by a timeout; failures and timeouts are logged and
dropped, never raised back into the caller.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from studydeck.domain.constants import BACKGROUND_TIMEOUT

logger = logging.getLogger(__name__)


class BackgroundDispatcher:
    """Owns the detached tasks spawned by the scheduler and the accumulator."""

    def __init__(self, timeout: float | None = BACKGROUND_TIMEOUT):
        self._timeout = timeout
        self._tasks: set[asyncio.Task[Any]] = set()
        self.failures = 0

    @property
    def pending(self) -> int:
        """Number of spawned tasks that have not finished yet."""
        return sum(1 for t in self._tasks if not t.done())

    def spawn(self, coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task[Any]:
        """
        Schedule coro in the background and return without awaiting it.

        Must be called from inside a running event loop.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise

        task = loop.create_task(self._run(coro, label), name=f"bg-{label}")
        # Strong reference until done, otherwise the loop may collect it.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every spawned task, including ones spawned while waiting."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, coro: Coroutine[Any, Any, Any], label: str) -> None:
        try:
            await asyncio.wait_for(coro, timeout=self._timeout)
            logger.debug(f"Background task '{label}' completed")
        except asyncio.TimeoutError:
            self.failures += 1
            logger.warning(f"Background task '{label}' timed out after {self._timeout}s; dropped")
        except Exception as e:
            self.failures += 1
            logger.warning(f"Background task '{label}' failed: {e}")
