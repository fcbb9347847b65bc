"""Redis cache backend; TTL is delegated to Redis key expiry."""

from __future__ import annotations

import logging
from typing import Any

from redis import asyncio as redis_async
from redis.exceptions import RedisError

from pulseboard.config.models import RedisConfig
from pulseboard.errors import CacheError

logger = logging.getLogger(__name__)


class RedisCache:
    """Shared cache backed by Redis. Implements the CacheStore protocol."""

    def __init__(self, client: Any, key_prefix: str = "pulseboard:") -> None:
        self._client = client
        self._prefix = key_prefix
        self._closed = False

    @classmethod
    def from_config(cls, config: RedisConfig, key_prefix: str = "pulseboard:") -> RedisCache:
        client = redis_async.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            password=config.password or None,
            decode_responses=True,
        )
        logger.info("Using Redis cache at %s:%d/%d", config.host, config.port, config.db)
        return cls(client, key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(self._key(key))
        except RedisError as exc:
            raise CacheError(f"redis get {key!r} failed: {exc}") from exc
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    async def set(self, key: str, value: str, ttl: float) -> None:
        ttl_ms = int(ttl * 1000)
        if ttl_ms <= 0:
            return
        try:
            await self._client.set(self._key(key), value, px=ttl_ms)
        except RedisError as exc:
            raise CacheError(f"redis set {key!r} failed: {exc}") from exc

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._client.aclose()
        except RedisError as exc:
            raise CacheError(f"redis close failed: {exc}") from exc
