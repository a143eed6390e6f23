"""IRC transport: pydle client that feeds joins into the moderation pipeline.

The client owns the connection only. It turns JOINs into JoinEvent objects for
the dispatcher, and exposes ``quiet`` and ``notify`` so the join handler can
act on flagged users.
"""

from __future__ import annotations

import pydle

from joinguard.configuration.app_configuration import AppConfig
from joinguard.datatypes.irc_datatypes import JoinEvent
from joinguard.errors import TransportError
from joinguard.moderation.join_dispatcher import JoinDispatcher
from joinguard.util.logger import get_logger

logger = get_logger("irc_client")

SEND_ERRORS = (pydle.Error, ConnectionError, OSError)


class JoinguardClient(pydle.Client):
    """Pydle client wired to the join dispatcher."""

    def __init__(self, config: AppConfig, **kwargs) -> None:
        settings = config.settings
        super().__init__(
            settings.nickname,
            username=settings.username,
            realname=settings.realname,
            **kwargs,
        )
        self.config = config
        self.dispatcher: JoinDispatcher | None = None

    def attach(self, dispatcher: JoinDispatcher) -> None:
        self.dispatcher = dispatcher

    # ========== Connection lifecycle ==========

    async def on_connect(self) -> None:
        """Log registration and join the configured channels."""
        await super().on_connect()
        settings = self.config.settings
        logger.info("[IRC CLIENT] Connected to %s as %s", settings.server, self.nickname)
        for channel in settings.channels:
            await self.join(channel)
            logger.info("[IRC CLIENT] Joined %s", channel)

    async def on_disconnect(self, expected: bool) -> None:
        await super().on_disconnect(expected)
        if expected:
            logger.info("[IRC CLIENT] Disconnected")
        else:
            logger.warning("[IRC CLIENT] Connection lost unexpectedly")

    # ========== Events ==========

    def build_join_event(self, channel: str, user: str) -> JoinEvent:
        """Create a JoinEvent from pydle's tracked user info."""
        info = self.users.get(user) or {}
        return JoinEvent(nickname=user, hostname=info.get("hostname") or "", channel=channel)

    async def on_join(self, channel: str, user: str) -> None:
        await super().on_join(channel, user)
        if self.dispatcher is None:
            logger.warning("[IRC CLIENT] Join from %s in %s before dispatcher attached", user, channel)
            return
        self.dispatcher.submit(self.build_join_event(channel, user))

    async def on_message(self, target: str, by: str, message: str) -> None:
        await super().on_message(target, by, message)
        logger.debug("[IRC CLIENT] Message from %s in %s: %s", by, target, message)

    # ========== Moderation transport ==========

    def own_nickname(self) -> str:
        """Return the live nickname, which may be a fallback like ``joinguard_``."""
        return self.nickname

    def ensure_connected(self) -> None:
        if not self.connected:
            raise TransportError("not connected")

    async def quiet(self, channel: str, nickname: str) -> None:
        """Quiet ``nickname`` in ``channel`` via services or a direct ``MODE +q``."""
        settings = self.config.settings
        self.ensure_connected()
        try:
            if settings.quiet_method == "mode":
                await self.rawmsg("MODE", channel, "+q", nickname)
            else:
                await self.message(settings.quiet_service, f"QUIET {channel} {nickname}")
        except SEND_ERRORS as exc:
            raise TransportError(f"quiet for {nickname} in {channel} failed: {exc}") from exc

    async def notify(self, recipient: str, text: str) -> None:
        """Send a private notification to ``recipient``."""
        self.ensure_connected()
        try:
            await self.message(recipient, text)
        except SEND_ERRORS as exc:
            raise TransportError(f"message to {recipient} failed: {exc}") from exc
