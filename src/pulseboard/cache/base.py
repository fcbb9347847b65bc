"""Cache store protocol and key helpers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

# Purpose suffixes appended to an instance URL to form a cache key.
VERSION_SUFFIX = "_version"
UPDATE_SUFFIX = "_update"
IRC_SUFFIX = "_irc"


def make_key(url: str, suffix: str = "") -> str:
    """Build the composite cache key for *url* and a purpose *suffix*."""
    return f"{url.rstrip('/')}{suffix}"


@runtime_checkable
class CacheStore(Protocol):
    """Key/value store with per-key TTL.

    A missing key and an expired key are indistinguishable: both read as None.
    """

    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl: float) -> None: ...
    async def close(self) -> None: ...
