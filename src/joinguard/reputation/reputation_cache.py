"""
Persistent address reputation cache.

Maps network addresses to their ReputationVerdict and keeps that mapping in a
JSON file so verdicts survive restarts. Entries never expire.

Lookups for an address that is not cached go through ``get_or_fetch``, which
guarantees a single in-flight fetch per address: concurrent callers for the
same address await the first caller's result instead of issuing their own
request.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Dict

from joinguard.datatypes.reputation_datatypes import NetworkAddress, ReputationVerdict
from joinguard.errors import PersistenceFailed
from joinguard.util.logger import get_logger

logger = get_logger("reputation_cache")

FetchFunc = Callable[[NetworkAddress], Awaitable[ReputationVerdict]]


class ReputationCache:
    """In-memory verdict map backed by an atomically replaced JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._verdicts: Dict[NetworkAddress, ReputationVerdict] = {}
        self._inflight: Dict[NetworkAddress, asyncio.Future[ReputationVerdict]] = {}
        self._persist_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._verdicts)

    def __contains__(self, address: object) -> bool:
        return address in self._verdicts

    # ========== Loading ==========

    def _read_file(self) -> Dict[NetworkAddress, ReputationVerdict]:
        with self.path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError("cache file does not contain a JSON object")

        loaded: Dict[NetworkAddress, ReputationVerdict] = {}
        for address, payload in raw.items():
            if not isinstance(payload, dict):
                logger.warning("[REPUTATION CACHE] Skipping malformed entry for %s", address)
                continue
            loaded[NetworkAddress(address)] = ReputationVerdict.from_dict(payload)
        return loaded

    async def load(self) -> int:
        """Seed the in-memory map from disk and return the number of entries.

        A missing file is a normal first start. An unreadable file is logged
        and treated the same way so the bot can still come up.
        """
        try:
            loaded = await asyncio.to_thread(self._read_file)
        except FileNotFoundError:
            logger.info("[REPUTATION CACHE] No cache file at %s; starting empty", self.path)
            return 0
        except (OSError, ValueError) as exc:
            logger.error("[REPUTATION CACHE] Failed to read %s, starting empty: %s", self.path, exc)
            return 0

        self._verdicts.update(loaded)
        logger.info("[REPUTATION CACHE] Loaded %d cached verdicts from %s", len(loaded), self.path)
        return len(loaded)

    # ========== Core API ==========

    def lookup(self, address: NetworkAddress) -> ReputationVerdict | None:
        """Return the cached verdict for ``address`` or ``None`` on a miss."""
        return self._verdicts.get(address)

    async def store(self, address: NetworkAddress, verdict: ReputationVerdict) -> None:
        """Record ``verdict`` for ``address`` and persist the whole cache.

        The in-memory entry is committed before persisting and stays
        authoritative even if the write fails.
        """
        self._verdicts[address] = verdict
        try:
            await self.persist()
        except PersistenceFailed as exc:
            logger.error("[REPUTATION CACHE] %s; keeping %s in memory only", exc, address)

    async def get_or_fetch(self, address: NetworkAddress, fetch: FetchFunc) -> ReputationVerdict:
        """Return the verdict for ``address``, fetching it at most once concurrently.

        Errors raised by ``fetch`` propagate to the caller that started the
        fetch and to every caller waiting on it. Failures are not cached.
        """
        cached = self._verdicts.get(address)
        if cached is not None:
            logger.info("[REPUTATION CACHE] Using cached security information for %s", address)
            return cached

        pending = self._inflight.get(address)
        if pending is not None:
            logger.debug("[REPUTATION CACHE] Awaiting in-flight lookup for %s", address)
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if not pending.cancelled() or (current is not None and current.cancelling()):
                    raise
            # The owning lookup was cancelled, not this caller; start over.
            logger.debug("[REPUTATION CACHE] In-flight lookup for %s was cancelled, retrying", address)
            return await self.get_or_fetch(address, fetch)

        future: asyncio.Future[ReputationVerdict] = asyncio.get_running_loop().create_future()
        self._inflight[address] = future
        try:
            verdict = await fetch(address)
            await self.store(address, verdict)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Marks the exception retrieved when nobody else was waiting.
            future.exception()
            raise
        else:
            future.set_result(verdict)
            return verdict
        finally:
            self._inflight.pop(address, None)

    # ========== Persistence ==========

    def _write_file(self, snapshot: Dict[str, Dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    async def persist(self) -> None:
        """Write the full cache to disk with a write-then-rename.

        Raises
        ------
        PersistenceFailed
            If the file could not be written.
        """
        async with self._persist_lock:
            snapshot = {address: verdict.to_dict() for address, verdict in self._verdicts.items()}
            try:
                await asyncio.to_thread(self._write_file, snapshot)
            except (OSError, TypeError, ValueError) as exc:
                raise PersistenceFailed(f"failed to persist cache to {self.path}: {exc}") from exc
        logger.debug("[REPUTATION CACHE] Persisted %d verdicts to %s", len(snapshot), self.path)
