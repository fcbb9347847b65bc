"""Base class for service checkers."""

from __future__ import annotations

import abc
import asyncio
import logging
import time
from collections.abc import Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pulseboard.cache.base import CacheStore, make_key
from pulseboard.errors import CacheError
from pulseboard.registry.models import EXTRA_RESPONSE_TIME, HealthResult, Status
from pulseboard.registry.transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_AUX_GRACE = 2.0


@dataclass(frozen=True)
class Started:
    """Wall-clock and monotonic start of a check."""

    at: datetime = field(default_factory=lambda: datetime.now(UTC))
    mono: float = field(default_factory=time.monotonic)

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.mono) * 1000


@dataclass(frozen=True)
class Outcome:
    """What an auxiliary task produced by the time we stopped waiting."""

    value: Any = None
    error: BaseException | None = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.timed_out

    @property
    def reason(self) -> str:
        if self.timed_out:
            return "timed out"
        return str(self.error) if self.error else ""


class BaseChecker(abc.ABC):
    """Abstract base for a product-specific health checker.

    Holds the shared transport and cache. Subclasses implement the product
    protocol; anything shared between products lives in free functions
    (see :mod:`pulseboard.checkers.arr`), not in deeper base classes.
    """

    service_type: str = "base"
    display_name: str = ""
    description: str = ""
    default_url: str = ""
    health_endpoint: str = ""
    requires_api_key: bool = False

    def __init__(
        self,
        transport: Transport,
        cache: CacheStore,
        aux_grace: float = DEFAULT_AUX_GRACE,
    ) -> None:
        self.transport = transport
        self.cache = cache
        self.aux_grace = aux_grace
        self._inflight: set[asyncio.Task[Any]] = set()

    @abc.abstractmethod
    async def check_health(self, url: str, api_key: str) -> tuple[HealthResult, int]:
        """Check the instance at *url*, returning the result and an HTTP status for the caller."""

    @abc.abstractmethod
    async def get_version(self, url: str, api_key: str) -> str:
        """Return the upstream version string."""

    @staticmethod
    def endpoint(base_url: str, path: str) -> str:
        return f"{base_url.rstrip('/')}{path}"

    # ─── cache ───

    async def cache_get(self, url: str, suffix: str) -> str | None:
        try:
            value = await self.cache.get(make_key(url, suffix))
        except CacheError as exc:
            logger.warning("Cache read failed for %s%s: %s", url, suffix, exc)
            return None
        if value:
            logger.debug("Cache hit for %s%s", url, suffix)
        return value or None

    async def cache_set(self, url: str, suffix: str, value: str, ttl: float) -> None:
        try:
            await self.cache.set(make_key(url, suffix), value, ttl)
        except CacheError as exc:
            logger.warning("Failed to cache %s%s: %s", url, suffix, exc)

    # ─── auxiliary tasks ───

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        """Start an auxiliary lookup that may outlive the check that started it."""
        task = asyncio.create_task(coro, name=name)
        self._inflight.add(task)
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task[Any]) -> None:
        self._inflight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Auxiliary task %s failed: %s", task.get_name(), task.exception())

    async def join(self, task: asyncio.Task[Any], timeout: float | None = None) -> Outcome:
        """Wait for *task* up to *timeout* seconds (default: the aux grace period).

        A task still running afterwards is left alone; its result is dropped.
        """
        return await self._collect(task, self.aux_grace if timeout is None else timeout)

    async def settle(self, task: asyncio.Task[Any]) -> Outcome:
        """Wait for *task* until it finishes, bounded only by its own deadline."""
        return await self._collect(task, None)

    async def _collect(self, task: asyncio.Task[Any], timeout: float | None) -> Outcome:
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if task not in done:
            logger.debug("Stopped waiting for %s after %ss", task.get_name(), timeout)
            return Outcome(timed_out=True)
        if task.cancelled():
            return Outcome(error=asyncio.CancelledError())
        exc = task.exception()
        if exc is not None:
            return Outcome(error=exc)
        return Outcome(value=task.result())

    async def drain(self) -> None:
        """Wait for every straggling auxiliary task to reach its own deadline."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    # ─── results ───

    def begin(self) -> Started:
        return Started()

    def respond(
        self,
        started: Started,
        status: Status,
        message: str,
        extras: dict[str, Any] | None = None,
    ) -> HealthResult:
        payload = dict(extras or {})
        response_time = payload.get(EXTRA_RESPONSE_TIME)
        if response_time is None:
            response_time = round(started.elapsed_ms())
            payload[EXTRA_RESPONSE_TIME] = response_time
        return HealthResult(
            status=status,
            message=message,
            started_at=started.at,
            response_time_ms=float(response_time),
            extras=payload,
        )
