"""HTTP client for the VPN/proxy reputation service."""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import quote

import requests

from joinguard.configuration.bot_settings import DEFAULT_URL_TEMPLATE
from joinguard.datatypes.reputation_datatypes import NetworkAddress, ReputationVerdict
from joinguard.errors import ReputationQueryFailed
from joinguard.util.logger import get_logger

logger = get_logger("reputation_client")


class ReputationClient:
    """
    Classify addresses through a vpnapi.io-style endpoint.

    Each call makes exactly one GET request; there is no retry. The blocking
    request runs in a worker thread so it never stalls the event loop.

    Args:
        api_key: Key substituted into the URL template.
        url_template: Format string with ``{address}`` and ``{api_key}`` placeholders.
        timeout: Per-request timeout in seconds.
        session: Optional requests session (defaults to module-level ``requests``).
    """

    def __init__(
        self,
        api_key: str,
        url_template: str = DEFAULT_URL_TEMPLATE,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.url_template = url_template
        self.timeout = timeout
        self._http = session or requests

    def build_url(self, address: NetworkAddress) -> str:
        return self.url_template.format(address=quote(address, safe=".:"), api_key=quote(self.api_key, safe=""))

    def _fetch(self, address: NetworkAddress) -> Any:
        """Perform the GET request. Blocks the calling thread."""
        url = self.build_url(address)
        try:
            response = self._http.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ReputationQueryFailed(f"request for {address} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ReputationQueryFailed(f"response for {address} is not valid JSON") from exc

    async def classify(self, address: NetworkAddress) -> ReputationVerdict:
        """Return the reputation verdict for ``address``.

        Raises
        ------
        ReputationQueryFailed
            On transport errors, non-2xx statuses, or a body without a
            ``security`` object.
        """
        logger.debug("[REPUTATION CLIENT] Querying reputation service for %s", address)
        body = await asyncio.to_thread(self._fetch, address)

        security = body.get("security") if isinstance(body, dict) else None
        if not isinstance(security, dict):
            raise ReputationQueryFailed(f"response for {address} has no security object")

        verdict = ReputationVerdict.from_dict(security)
        logger.debug("[REPUTATION CLIENT] %s classified as %s", address, verdict.describe())
        return verdict
