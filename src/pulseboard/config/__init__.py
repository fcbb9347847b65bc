"""Pulseboard configuration system."""

from pulseboard.config.loader import find_config_file, load_config
from pulseboard.config.models import (
    CacheConfig,
    CheckConfig,
    PulseboardConfig,
    RedisConfig,
    ServiceEntry,
)

__all__ = [
    "CacheConfig",
    "CheckConfig",
    "PulseboardConfig",
    "RedisConfig",
    "ServiceEntry",
    "load_config",
    "find_config_file",
]
