"""Per-event task scheduling for join handling.

Every join runs in its own task so a slow DNS lookup or reputation query
never holds up other joins. The dispatcher tracks live tasks so shutdown can
wait for them and cancel whatever is left.
"""

from __future__ import annotations

import asyncio
from typing import Set

from joinguard.datatypes.irc_datatypes import JoinEvent
from joinguard.moderation.join_handler import JoinHandler
from joinguard.util.logger import get_logger

logger = get_logger("join_dispatcher")


class JoinDispatcher:
    """Spawn and track one pipeline task per join event."""

    def __init__(self, handler: JoinHandler) -> None:
        self.handler = handler
        self._tasks: Set[asyncio.Task] = set()
        self._closing = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, event: JoinEvent) -> asyncio.Task | None:
        """Schedule ``event`` for processing and return its task.

        Returns ``None`` once shutdown has begun.
        """
        if self._closing:
            logger.debug("[JOIN DISPATCHER] Shutting down, dropping join from %s", event.nickname)
            return None

        task = asyncio.get_running_loop().create_task(
            self.handler.handle(event),
            name=f"joinguard-join-{event.channel}-{event.nickname}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("[JOIN DISPATCHER] %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "[JOIN DISPATCHER] Unhandled error in %s",
                task.get_name(),
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Stop accepting events, wait up to ``timeout`` seconds, cancel the rest."""
        self._closing = True
        tasks = set(self._tasks)
        if not tasks:
            logger.info("[JOIN DISPATCHER] Shutdown complete, nothing in flight")
            return

        logger.info("[JOIN DISPATCHER] Waiting for %d in-flight joins", len(tasks))
        _done, still_running = await asyncio.wait(tasks, timeout=timeout)

        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning("[JOIN DISPATCHER] Cancelled %d joins still in flight", len(still_running))

        logger.info("[JOIN DISPATCHER] Shutdown complete")
