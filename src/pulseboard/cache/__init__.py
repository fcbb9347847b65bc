"""Cache backends for upstream versions and sub-statuses."""

from __future__ import annotations

import logging

from pulseboard.cache.base import (
    IRC_SUFFIX,
    UPDATE_SUFFIX,
    VERSION_SUFFIX,
    CacheStore,
    make_key,
)
from pulseboard.cache.memory import MemoryCache
from pulseboard.config.models import CacheConfig

logger = logging.getLogger(__name__)


def build_cache(config: CacheConfig) -> CacheStore:
    """Create the backend selected by *config*."""
    if config.type == "redis":
        from pulseboard.cache.redis import RedisCache

        return RedisCache.from_config(config.redis, key_prefix=config.key_prefix)
    logger.info("Using in-memory cache")
    return MemoryCache(sweep_interval=config.sweep_interval)


async def close_cache(cache: CacheStore) -> None:
    """Close *cache*, logging instead of raising on failure."""
    try:
        await cache.close()
    except Exception:
        logger.exception("Failed to close cache")


__all__ = [
    "IRC_SUFFIX",
    "UPDATE_SUFFIX",
    "VERSION_SUFFIX",
    "CacheStore",
    "MemoryCache",
    "build_cache",
    "close_cache",
    "make_key",
]
