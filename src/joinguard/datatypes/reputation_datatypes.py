"""
Data structures for address reputation.

A :class:`ReputationVerdict` is what the reputation service says about one
network address. Verdicts are immutable and are cached per address for the
lifetime of the cache file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, NewType

NetworkAddress = NewType("NetworkAddress", str)

FLAG_FIELDS = ("vpn", "proxy", "tor", "relay")


@dataclass(frozen=True, slots=True)
class ReputationVerdict:
    """Security classification of a single network address.

    Attributes:
        vpn: Address belongs to a known VPN provider.
        proxy: Address is an open or commercial proxy.
        tor: Address is a Tor exit node.
        relay: Address is a privacy relay (e.g. iCloud Private Relay).
        extra: Any other fields the service returned, passed through untouched.
    """

    vpn: bool = False
    proxy: bool = False
    tor: bool = False
    relay: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ReputationVerdict":
        """Build a verdict from the service's ``security`` object or a cache entry."""
        extra = {key: value for key, value in payload.items() if key not in FLAG_FIELDS}
        return cls(
            vpn=payload.get("vpn") is True,
            proxy=payload.get("proxy") is True,
            tor=payload.get("tor") is True,
            relay=payload.get("relay") is True,
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON-serializable form written to the cache file."""
        data: Dict[str, Any] = {
            "vpn": self.vpn,
            "proxy": self.proxy,
            "tor": self.tor,
            "relay": self.relay,
        }
        data.update(self.extra)
        return data

    @property
    def is_flagged(self) -> bool:
        return self.vpn or self.proxy or self.tor or self.relay

    def describe(self) -> str:
        return (
            f"VPN={_flag(self.vpn)}, Proxy={_flag(self.proxy)}, "
            f"Tor={_flag(self.tor)}, Relay={_flag(self.relay)}"
        )


def _flag(value: bool) -> str:
    return "true" if value else "false"
