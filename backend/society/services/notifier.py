"""
Best-effort background notifications.

Registration and payment hand their emails to the notifier and return at
once; a failed or crashed send is logged and never reaches the caller.
"""

import asyncio
from typing import Awaitable, Set

from society.core.logging_config import logger


class Notifier:
    """Fire-and-forget task runner for outbound messages"""

    def __init__(self):
        self._pending: Set[asyncio.Task] = set()

    def dispatch(self, coro: Awaitable, description: str) -> asyncio.Task:
        """Schedule ``coro`` on the running loop without awaiting it"""
        task = asyncio.create_task(coro)
        self._pending.add(task)

        def _done(t: asyncio.Task) -> None:
            self._pending.discard(t)
            if t.cancelled():
                logger.warning(f"[Notify] {description} cancelled")
                return
            exc = t.exception()
            if exc is not None:
                logger.error(
                    f"[Notify] {description} failed: {type(exc).__name__}: {exc}",
                    extra={"event_type": "notification", "notification": description},
                )
            elif t.result() is False:
                logger.warning(f"[Notify] {description} not delivered")

        task.add_done_callback(_done)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all outstanding sends (shutdown and tests)"""
        while True:
            running = [t for t in self._pending if not t.done()]
            if not running:
                break
            await asyncio.gather(*running, return_exceptions=True)
        # let done-callbacks log before returning
        await asyncio.sleep(0)


notifier = Notifier()
