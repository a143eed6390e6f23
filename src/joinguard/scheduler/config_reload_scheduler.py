"""Periodic configuration reload.

Re-reads the YAML configuration on a fixed interval so exemption and
notification lists can be edited without restarting the bot. Each reload
swaps in a fresh settings snapshot; pipelines already running keep the
snapshot they started with.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from joinguard.configuration.app_configuration import AppConfig
from joinguard.util.logger import get_logger

logger = get_logger("config_reload_scheduler")


class ConfigReloadScheduler:
    """
    Background task that calls ``AppConfig.reload`` every ``interval`` seconds.

    Args:
        config: Configuration accessor to reload.
        get_interval: Callable returning the interval in seconds (called at start).
            A non-positive interval disables reloading.
    """

    def __init__(self, config: AppConfig, get_interval: Callable[[], float]) -> None:
        self._config = config
        self._get_interval = get_interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _reload_once(self) -> None:
        settings = await asyncio.to_thread(self._config.reload)
        logger.debug(
            "[CONFIG RELOAD] Reloaded: %d exemptions, %d notify users",
            len(settings.exemptions), len(settings.notify_users),
        )

    async def _run_loop(self, interval: float) -> None:
        """Infinite loop: sleep, reload, repeat."""
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    await self._reload_once()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error("[CONFIG RELOAD] Unexpected error during reload: %s", exc)
        except asyncio.CancelledError:
            logger.info("[CONFIG RELOAD] Periodic reload cancelled")
            raise

    def start(self) -> None:
        """Start the background reload task if enabled and not already running."""
        if self.running:
            logger.warning("[CONFIG RELOAD] Reload task already running")
            return
        interval = self._get_interval()
        if interval <= 0:
            logger.info("[CONFIG RELOAD] Periodic reload disabled")
            return
        logger.info("[CONFIG RELOAD] Reloading configuration every %.1fs", interval)
        self._task = asyncio.create_task(self._run_loop(interval), name="joinguard-config-reload")

    async def shutdown(self) -> None:
        """Stop the task and clear references."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("[CONFIG RELOAD] Scheduler shutdown complete")
