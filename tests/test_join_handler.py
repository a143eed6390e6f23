import asyncio
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from joinguard.configuration.bot_settings import BotSettings
from joinguard.datatypes.irc_datatypes import JoinEvent, ModerationAction, Notification, QuietCommand
from joinguard.datatypes.reputation_datatypes import NetworkAddress, ReputationVerdict
from joinguard.errors import ReputationQueryFailed, ResolutionFailed, TransportError
from joinguard.moderation.join_handler import JoinHandler, format_notification
from joinguard.reputation.address_resolver import AddressResolver
from joinguard.reputation.reputation_cache import ReputationCache

RECIPIENTS = ("alice_op", "bob_op")
VPN = ReputationVerdict(vpn=True)
CLEAN = ReputationVerdict()


class RecordingTransport:
    def __init__(self, nickname: str = "joinguard") -> None:
        self.nickname = nickname
        self.quiets: list[tuple[str, str]] = []
        self.notifications: list[tuple[str, str]] = []

    def own_nickname(self) -> str:
        return self.nickname

    async def quiet(self, channel: str, nickname: str) -> None:
        self.quiets.append((channel, nickname))

    async def notify(self, recipient: str, text: str) -> None:
        self.notifications.append((recipient, text))


class Harness:
    def __init__(self, tmp_path: Path, verdict: ReputationVerdict = VPN, **settings) -> None:
        settings.setdefault("nickname", "joinguard")
        settings.setdefault("notify_users", RECIPIENTS)
        self.config = SimpleNamespace(settings=BotSettings(**settings))
        self.dns = AsyncMock(return_value=["198.51.100.9"])
        self.resolver = AddressResolver(resolve=self.dns)
        self.cache = ReputationCache(tmp_path / "ip_cache.json")
        self.client = MagicMock()
        self.client.classify = AsyncMock(return_value=verdict)
        self.transport = RecordingTransport()
        self.handler = JoinHandler(self.config, self.resolver, self.cache, self.client, self.transport)


@pytest.fixture()
def harness(tmp_path: Path) -> Harness:
    return Harness(tmp_path)


@pytest.mark.asyncio
async def test_flagged_literal_address_is_quieted_and_reported(harness: Harness) -> None:
    event = JoinEvent(nickname="alice", hostname="203.0.113.5", channel="#ops")

    action = await harness.handler.handle(event)

    assert harness.cache.lookup(NetworkAddress("203.0.113.5")) == VPN
    harness.client.classify.assert_awaited_once_with("203.0.113.5")
    harness.dns.assert_not_called()
    assert harness.transport.quiets == [("#ops", "alice")]
    assert [recipient for recipient, _ in harness.transport.notifications] == list(RECIPIENTS)
    for _, text in harness.transport.notifications:
        assert "alice" in text
        assert "203.0.113.5" in text
        assert "VPN=true" in text
    assert action == ModerationAction(
        quiet=QuietCommand(channel="#ops", nickname="alice"),
        notifications=tuple(
            Notification(recipient=r, text=format_notification("alice", NetworkAddress("203.0.113.5"), VPN))
            for r in RECIPIENTS
        ),
    )


@pytest.mark.asyncio
async def test_repeated_join_uses_cached_verdict(harness: Harness) -> None:
    event = JoinEvent(nickname="alice", hostname="203.0.113.5", channel="#ops")

    await harness.handler.handle(event)
    await harness.handler.handle(event)

    harness.client.classify.assert_awaited_once()
    assert harness.transport.quiets == [("#ops", "alice"), ("#ops", "alice")]
    assert len(harness.transport.notifications) == 2 * len(RECIPIENTS)


@pytest.mark.asyncio
async def test_empty_host_aborts_without_lookups(harness: Harness) -> None:
    event = JoinEvent(nickname="alice", hostname="", channel="#ops")

    with patch("joinguard.moderation.join_handler.logger") as mock_logger:
        assert await harness.handler.handle(event) is None

    harness.dns.assert_not_called()
    harness.client.classify.assert_not_called()
    assert len(harness.cache) == 0
    assert harness.transport.quiets == []
    assert "No hostname information" in mock_logger.info.call_args.args[0]


@pytest.mark.asyncio
async def test_exempt_nick_with_underscore_skips_everything(tmp_path: Path) -> None:
    harness = Harness(tmp_path, exemptions=("bob",))
    event = JoinEvent(nickname="BOB_", hostname="host.example.net", channel="#ops")

    assert await harness.handler.handle(event) is None

    harness.dns.assert_not_called()
    harness.client.classify.assert_not_called()
    assert harness.transport.quiets == []


@pytest.mark.asyncio
async def test_own_join_is_ignored(harness: Harness) -> None:
    event = JoinEvent(nickname="JoinGuard", hostname="203.0.113.5", channel="#ops")

    assert await harness.handler.handle(event) is None
    harness.client.classify.assert_not_called()


@pytest.mark.asyncio
async def test_clean_verdict_takes_no_action(tmp_path: Path) -> None:
    harness = Harness(tmp_path, verdict=CLEAN)
    event = JoinEvent(nickname="carol", hostname="203.0.113.8", channel="#ops")

    assert await harness.handler.handle(event) is None

    assert harness.cache.lookup(NetworkAddress("203.0.113.8")) == CLEAN
    assert harness.transport.quiets == []
    assert harness.transport.notifications == []


@pytest.mark.asyncio
@pytest.mark.parametrize("flag", ["vpn", "proxy", "tor", "relay"])
async def test_any_flag_triggers_one_quiet_and_one_notice_per_recipient(tmp_path: Path, flag: str) -> None:
    harness = Harness(tmp_path, verdict=ReputationVerdict(**{flag: True}))
    event = JoinEvent(nickname="dave", hostname="203.0.113.9", channel="#lobby")

    await harness.handler.handle(event)

    assert harness.transport.quiets == [("#lobby", "dave")]
    assert len(harness.transport.notifications) == len(RECIPIENTS)


@pytest.mark.asyncio
async def test_hostname_is_resolved_before_lookup(harness: Harness) -> None:
    event = JoinEvent(nickname="erin", hostname="pool-1.isp.example.net", channel="#ops")

    await harness.handler.handle(event)

    harness.dns.assert_awaited_once_with("pool-1.isp.example.net")
    harness.client.classify.assert_awaited_once_with("198.51.100.9")
    assert harness.cache.lookup(NetworkAddress("198.51.100.9")) == VPN


@pytest.mark.asyncio
async def test_resolution_failure_aborts(harness: Harness) -> None:
    harness.resolver.resolve = AsyncMock(side_effect=ResolutionFailed("NXDOMAIN"))
    event = JoinEvent(nickname="frank", hostname="gone.example.net", channel="#ops")

    assert await harness.handler.handle(event) is None
    harness.client.classify.assert_not_called()
    assert harness.transport.quiets == []


@pytest.mark.asyncio
async def test_reputation_failure_aborts(harness: Harness) -> None:
    harness.client.classify = AsyncMock(side_effect=ReputationQueryFailed("HTTP 429"))
    event = JoinEvent(nickname="gina", hostname="203.0.113.10", channel="#ops")

    assert await harness.handler.handle(event) is None
    assert len(harness.cache) == 0
    assert harness.transport.quiets == []


@pytest.mark.asyncio
async def test_concurrent_joins_for_same_host_query_once(harness: Harness) -> None:
    calls = 0

    async def slow_classify(address: NetworkAddress) -> ReputationVerdict:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return VPN

    harness.client.classify = slow_classify
    events = [JoinEvent(nickname=f"user{i}", hostname="pool-1.isp.example.net", channel="#ops") for i in range(8)]

    await asyncio.gather(*(harness.handler.handle(event) for event in events))

    assert calls == 1
    assert len(harness.transport.quiets) == 8


@pytest.mark.asyncio
async def test_reloaded_settings_apply_to_next_event(harness: Harness) -> None:
    harness.config.settings = BotSettings(nickname="joinguard", exemptions=("alice",), notify_users=RECIPIENTS)
    event = JoinEvent(nickname="alice", hostname="203.0.113.5", channel="#ops")

    assert await harness.handler.handle(event) is None
    harness.client.classify.assert_not_called()


@pytest.mark.asyncio
async def test_failed_notification_does_not_stop_others(harness: Harness) -> None:
    transport = MagicMock()
    transport.own_nickname.return_value = "joinguard"
    transport.quiet = AsyncMock(side_effect=TransportError("not connected"))
    transport.notify = AsyncMock(side_effect=[TransportError("boom"), None])
    harness.handler.transport = transport
    event = JoinEvent(nickname="alice", hostname="203.0.113.5", channel="#ops")

    action = await harness.handler.handle(event)

    assert action is not None
    transport.quiet.assert_awaited_once_with("#ops", "alice")
    assert transport.notify.await_count == len(RECIPIENTS)


@pytest.mark.asyncio
async def test_join_under_fallback_nickname_is_ignored(harness: Harness) -> None:
    harness.transport.nickname = "joinguard_"
    event = JoinEvent(nickname="JoinGuard_", hostname="203.0.113.5", channel="#ops")

    assert await harness.handler.handle(event) is None
    harness.client.classify.assert_not_called()
    assert harness.transport.quiets == []


@pytest.mark.asyncio
async def test_malformed_hostname_aborts_quietly(harness: Harness) -> None:
    harness.dns.side_effect = UnicodeError("label empty or too long")
    event = JoinEvent(nickname="hank", hostname="foo..example.net", channel="#ops")

    assert await harness.handler.handle(event) is None
    harness.client.classify.assert_not_called()
    assert harness.transport.quiets == []
