"""In-process cache backend with lazy expiry."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class MemoryCache:
    """Dict-backed TTL cache. Implements the CacheStore protocol.

    Expired entries are dropped when read, and a full sweep runs on write at
    most once every *sweep_interval* seconds so keys that are never read again
    do not pile up.
    """

    def __init__(
        self,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, tuple[str, float]] = {}
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._last_sweep = clock()
        self._closed = False

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, ttl: float) -> None:
        now = self._clock()
        if ttl <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = (value, now + ttl)
        if now - self._last_sweep >= self._sweep_interval:
            self.sweep()

    def sweep(self) -> int:
        """Drop every expired entry; return how many were removed."""
        now = self._clock()
        self._last_sweep = now
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._entries.clear()
