"""Turn the host part of an IRC prefix into a network address.

Literal addresses are passed through unchanged; anything else is looked up
through the event loop's resolver (or an injected resolve callable) and the
first returned address is used.
"""

from __future__ import annotations

import asyncio
import socket
from typing import Awaitable, Callable, List

from joinguard.datatypes.reputation_datatypes import NetworkAddress
from joinguard.errors import NoHostInfo, ResolutionFailed
from joinguard.util.logger import get_logger

logger = get_logger("address_resolver")

ResolveFunc = Callable[[str], Awaitable[List[str]]]


def looks_like_address(raw_host: str) -> bool:
    """Heuristic literal check: digits only once ``.`` and ``:`` are removed.

    This is not an address validator. All-digit hostnames pass, and IPv6
    literals containing hex letters do not.
    """
    stripped = raw_host.replace(".", "").replace(":", "")
    return stripped.isascii() and stripped.isdigit()


async def getaddrinfo_resolve(hostname: str) -> List[str]:
    """Resolve ``hostname`` with the running loop, preserving result order."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    addresses: List[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        address = sockaddr[0]
        if address not in addresses:
            addresses.append(address)
    return addresses


class AddressResolver:
    """Resolve raw hosts to canonical addresses with a bounded timeout."""

    def __init__(self, resolve: ResolveFunc | None = None, timeout: float = 5.0) -> None:
        self._resolve = resolve or getaddrinfo_resolve
        self.timeout = timeout

    async def resolve(self, raw_host: str | None) -> NetworkAddress:
        """Return the network address for ``raw_host``.

        Raises
        ------
        NoHostInfo
            If ``raw_host`` is empty.
        ResolutionFailed
            If the hostname does not resolve, resolves to nothing, or the
            lookup exceeds the timeout.
        """
        if not raw_host:
            raise NoHostInfo("no host information")

        if looks_like_address(raw_host):
            return NetworkAddress(raw_host)

        try:
            addresses = await asyncio.wait_for(self._resolve(raw_host), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise ResolutionFailed(f"resolving {raw_host} timed out after {self.timeout:.1f}s") from exc
        except (socket.gaierror, OSError, UnicodeError) as exc:
            # UnicodeError: IDNA rejects empty or over-long labels.
            raise ResolutionFailed(f"failed to resolve {raw_host}: {exc}") from exc

        if not addresses:
            raise ResolutionFailed(f"no addresses found for {raw_host}")

        # First returned address wins; order depends on the system resolver.
        address = addresses[0]
        logger.debug("[ADDRESS RESOLVER] %s resolved to %s (%d candidates)", raw_host, address, len(addresses))
        return NetworkAddress(address)
