from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

DEFAULT_URL_TEMPLATE = "https://vpnapi.io/api/{address}?key={api_key}"
DEFAULT_CACHE_PATH = Path("data") / "ip_cache.json"


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key, {})
    return value if isinstance(value, dict) else {}


def _string_list(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item) for item in value if item is not None and str(item))


@dataclass(frozen=True, slots=True)
class BotSettings:
    """Immutable snapshot of the bot configuration.

    A new snapshot is built on every reload; readers hold whichever snapshot
    was current when they started, so a reload never changes settings under a
    running pipeline.
    """

    server: str = ""
    port: int = 6667
    tls: bool = False
    nickname: str = "joinguard"
    username: str = "joinguard"
    realname: str = "Joinguard"
    password: str | None = None
    channels: Tuple[str, ...] = ()

    exemptions: Tuple[str, ...] = ()
    notify_users: Tuple[str, ...] = ()

    api_key: str = ""
    url_template: str = DEFAULT_URL_TEMPLATE
    reputation_timeout: float = 10.0
    resolver_timeout: float = 5.0

    cache_path: Path = field(default=DEFAULT_CACHE_PATH)

    quiet_service: str = "ChanServ"
    quiet_method: str = "chanserv"

    reload_interval: float = 0.0

    @classmethod
    def from_mapping(cls, data: Dict[str, Any] | None) -> "BotSettings":
        """Build settings from the raw YAML mapping, applying defaults for anything missing."""
        data = data if isinstance(data, dict) else {}
        irc = _section(data, "irc")
        reputation = _section(data, "reputation")
        resolver = _section(data, "resolver")
        cache = _section(data, "cache")
        moderation = _section(data, "moderation")
        reload_cfg = _section(data, "config_reload")

        nickname = str(irc.get("nickname") or "joinguard")
        quiet_method = str(moderation.get("quiet_method") or "chanserv").lower()
        if quiet_method not in ("chanserv", "mode"):
            quiet_method = "chanserv"

        return cls(
            server=str(irc.get("server") or ""),
            port=int(irc.get("port", 6667)),
            tls=bool(irc.get("tls", False)),
            nickname=nickname,
            username=str(irc.get("username") or nickname),
            realname=str(irc.get("realname") or nickname),
            password=str(irc["password"]) if irc.get("password") else None,
            channels=_string_list(irc.get("channels")),
            exemptions=_string_list(data.get("exemptions")),
            notify_users=_string_list(data.get("notify_users")),
            api_key=str(reputation.get("api_key") or ""),
            url_template=str(reputation.get("url_template") or DEFAULT_URL_TEMPLATE),
            reputation_timeout=float(reputation.get("timeout_seconds", 10.0)),
            resolver_timeout=float(resolver.get("timeout_seconds", 5.0)),
            cache_path=Path(cache.get("path") or DEFAULT_CACHE_PATH),
            quiet_service=str(moderation.get("quiet_service") or "ChanServ"),
            quiet_method=quiet_method,
            reload_interval=float(reload_cfg.get("interval_seconds", 0.0)),
        )
