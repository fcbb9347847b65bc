"""YAML config loader with environment variable interpolation and overrides."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pulseboard.config.models import PulseboardConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".pulseboard.yaml"
ENV_CONFIG_PATH = "PULSEBOARD_CONFIG"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _interpolate_env(value: str) -> str:
    """Replace ${VAR} and ${VAR:-default} patterns with environment values."""

    def _replace(match: re.Match[str]) -> str:
        expr = match.group(1)
        if ":-" in expr:
            var_name, default = expr.split(":-", 1)
            return os.environ.get(var_name.strip(), default)
        return os.environ.get(expr.strip(), match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(data: Any) -> Any:
    """Walk a nested data structure and interpolate env vars in strings."""
    if isinstance(data, str):
        return _interpolate_env(data)
    if isinstance(data, dict):
        return {k: _interpolate_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_interpolate_recursive(item) for item in data]
    return data


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Let CACHE_TYPE, REDIS_HOST and REDIS_PORT win over the file."""
    cache = dict(data.get("cache") or {})
    redis = dict(cache.get("redis") or {})

    if cache_type := os.environ.get("CACHE_TYPE"):
        cache["type"] = cache_type.strip().lower()
    if host := os.environ.get("REDIS_HOST"):
        redis["host"] = host
        # A Redis host with no explicit cache type means "use Redis".
        cache.setdefault("type", "redis")
    if port := os.environ.get("REDIS_PORT"):
        try:
            redis["port"] = int(port)
        except ValueError:
            logger.warning("Ignoring non-numeric REDIS_PORT %r", port)

    if redis:
        cache["redis"] = redis
    if cache:
        data = {**data, "cache": cache}
    return data


def find_config_file(start: Path | None = None) -> Path | None:
    """Return $PULSEBOARD_CONFIG, or walk up from *start* looking for .pulseboard.yaml."""
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        return Path(env_path)
    current = (start or Path.cwd()).resolve()
    for ancestor in [current, *current.parents]:
        candidate = ancestor / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(path: Path | None = None) -> PulseboardConfig:
    """Load and validate .pulseboard.yaml, applying interpolation and env overrides."""
    config_path = path or find_config_file()
    if not config_path or not config_path.exists():
        raise FileNotFoundError(
            f"Could not find {CONFIG_FILENAME}. Create one from .pulseboard.yaml.example or specify a path."
        )
    with config_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    data = _apply_env_overrides(_interpolate_recursive(raw))
    try:
        return PulseboardConfig(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc
