"""Shared fixtures for Pulseboard tests."""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import Any, Dict

import httpx
import pytest
import yaml

from pulseboard.cache.memory import MemoryCache
from pulseboard.config.models import PulseboardConfig
from pulseboard.registry.transport import Transport

SAMPLE_CONFIG: Dict[str, Any] = {
    "pulseboard": {"name": "Pulseboard", "version": "0.1.0"},
    "cache": {"type": "memory"},
    "checks": {"aux_grace": 2.0},
    "logging": {"level": "INFO"},
    "services": {
        "autobrr": {
            "type": "autobrr",
            "name": "Autobrr",
            "url": "http://localhost:7474",
            "api_key": "abc",
        },
        "homepage": {
            "type": "general",
            "name": "Homepage",
            "url": "http://localhost:3000/api/healthcheck",
        },
    },
}


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Upstream:
    """A fake set of HTTP endpoints keyed by path, counting every call."""

    def __init__(self) -> None:
        self._routes: dict[str, Callable[[httpx.Request], Any]] = {}
        self.calls: Counter[str] = Counter()
        self.requests: list[httpx.Request] = []

    def add(
        self,
        path: str,
        status: int = 200,
        *,
        json: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
        delay: float = 0.0,
    ) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            if delay:
                await asyncio.sleep(delay)
            if json is not None:
                return httpx.Response(status, json=json, headers=headers)
            return httpx.Response(status, text=text or "", headers=headers)

        self._routes[path] = handler

    def refuse(self, path: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        self._routes[path] = handler

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] += 1
        self.requests.append(request)
        route = self._routes.get(path)
        if route is None:
            return httpx.Response(404, text="not found")
        result = route(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    def last_request(self, path: str) -> httpx.Request:
        return [r for r in self.requests if r.url.path == path][-1]

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def transport(self) -> Transport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self._handle), follow_redirects=True)
        return Transport(client)


@pytest.fixture()
def sample_config() -> PulseboardConfig:
    """Return a parsed PulseboardConfig from sample data."""
    return PulseboardConfig(**SAMPLE_CONFIG)


@pytest.fixture()
def sample_config_dict() -> Dict[str, Any]:
    """Return raw sample config dict."""
    return dict(SAMPLE_CONFIG)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Write sample config to a temp .pulseboard.yaml and return the path."""
    path = tmp_path / ".pulseboard.yaml"
    with path.open("w") as fh:
        yaml.dump(SAMPLE_CONFIG, fh)
    return path


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> MemoryCache:
    return MemoryCache(sweep_interval=60.0, clock=clock)


@pytest.fixture()
def upstream() -> Upstream:
    return Upstream()
