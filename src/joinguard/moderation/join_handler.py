"""
Join event pipeline.

For every join the handler runs the same fixed sequence:

1. Ignore the bot's own joins.
2. Ignore exempt nicknames.
3. Resolve the user's host to a network address.
4. Look the address up in the reputation cache, querying the reputation
   service on a miss.
5. If the verdict carries any of the VPN/proxy/Tor/relay flags, quiet the user
   and notify every configured operator.

Any failure along the way is logged and ends processing for that event only.
Nothing is ever reported back to the channel.
"""

from __future__ import annotations

from typing import Protocol

from joinguard.configuration.bot_settings import BotSettings
from joinguard.datatypes.irc_datatypes import JoinEvent, ModerationAction, Notification, QuietCommand
from joinguard.datatypes.reputation_datatypes import NetworkAddress, ReputationVerdict
from joinguard.errors import NoHostInfo, ReputationQueryFailed, ResolutionFailed, TransportError
from joinguard.moderation.exemptions import is_exempt
from joinguard.reputation.address_resolver import AddressResolver
from joinguard.reputation.reputation_cache import ReputationCache
from joinguard.reputation.reputation_client import ReputationClient
from joinguard.util.logger import get_logger

logger = get_logger("join_handler")


class SettingsProvider(Protocol):
    @property
    def settings(self) -> BotSettings: ...


class ModerationTransport(Protocol):
    """Outbound side of the IRC connection used for moderation."""

    async def quiet(self, channel: str, nickname: str) -> None: ...

    async def notify(self, recipient: str, text: str) -> None: ...

    def own_nickname(self) -> str:
        """Nickname the connection is currently registered under."""
        ...


def format_notification(nickname: str, address: NetworkAddress, verdict: ReputationVerdict) -> str:
    return f"User {nickname} joined with IP {address} and triggered a security flag: {verdict.describe()}"


def build_action(
    event: JoinEvent,
    address: NetworkAddress,
    verdict: ReputationVerdict,
    recipients: tuple[str, ...],
) -> ModerationAction:
    """Build the quiet command and one notification per recipient."""
    text = format_notification(event.nickname, address, verdict)
    return ModerationAction(
        quiet=QuietCommand(channel=event.channel, nickname=event.nickname),
        notifications=tuple(Notification(recipient=recipient, text=text) for recipient in recipients),
    )


class JoinHandler:
    """Orchestrates classification and moderation for a single join event."""

    def __init__(
        self,
        config: SettingsProvider,
        resolver: AddressResolver,
        cache: ReputationCache,
        client: ReputationClient,
        transport: ModerationTransport,
    ) -> None:
        self.config = config
        self.resolver = resolver
        self.cache = cache
        self.client = client
        self.transport = transport

    async def handle(self, event: JoinEvent) -> ModerationAction | None:
        """Run the pipeline for ``event`` and return the action taken, if any."""
        # One snapshot per event; a reload mid-pipeline does not affect it.
        settings = self.config.settings

        own_nicks = {settings.nickname.lower(), self.transport.own_nickname().lower()}
        if event.nickname.lower() in own_nicks:
            return None

        if is_exempt(event.nickname, settings.exemptions):
            logger.info("[JOIN HANDLER] %s is exempt, skipping", event.nickname)
            return None

        try:
            address = await self.resolver.resolve(event.hostname)
        except NoHostInfo:
            logger.info("[JOIN HANDLER] No hostname information for user %s, aborting process.", event.nickname)
            return None
        except ResolutionFailed as exc:
            logger.warning("[JOIN HANDLER] No valid address found for %s (%s), aborting process.", event.hostname, exc)
            return None

        logger.info("[JOIN HANDLER] User %s joined %s with address %s", event.nickname, event.channel, address)

        try:
            verdict = await self.cache.get_or_fetch(address, self.client.classify)
        except ReputationQueryFailed as exc:
            logger.warning("[JOIN HANDLER] No security information available for %s: %s", address, exc)
            return None

        logger.info("[JOIN HANDLER] Security information for %s: %s", address, verdict.describe())

        if not verdict.is_flagged:
            return None

        action = build_action(event, address, verdict, settings.notify_users)
        await self.apply(action)
        return action

    async def apply(self, action: ModerationAction) -> None:
        """Send the quiet command, then each notification.

        A failed send is logged and does not stop the remaining messages.
        """
        quiet = action.quiet
        try:
            await self.transport.quiet(quiet.channel, quiet.nickname)
            logger.info("[JOIN HANDLER] Quieted %s in %s", quiet.nickname, quiet.channel)
        except TransportError as exc:
            logger.error("[JOIN HANDLER] Failed to quiet %s in %s: %s", quiet.nickname, quiet.channel, exc)

        for notification in action.notifications:
            try:
                await self.transport.notify(notification.recipient, notification.text)
            except TransportError as exc:
                logger.error("[JOIN HANDLER] Failed to notify %s: %s", notification.recipient, exc)
