"""Concurrent health checks across every configured instance."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Iterable, Mapping

from pulseboard.cache import CacheStore, build_cache, close_cache
from pulseboard.checkers import BaseChecker, build_checker_factories
from pulseboard.config.models import PulseboardConfig
from pulseboard.registry.models import HealthResult, ServiceInstance, Status
from pulseboard.registry.transport import Transport

logger = logging.getLogger(__name__)


class HealthAggregator:
    """Dispatches each instance to its product checker and collects the results.

    One instance's failure or slowness never affects another's result. There is
    no blanket timeout here; every checker enforces its own deadlines.
    """

    def __init__(
        self,
        factories: Mapping[str, type[BaseChecker]],
        transport: Transport,
        cache: CacheStore,
        aux_grace: float = 2.0,
    ) -> None:
        self._factories = factories
        self._transport = transport
        self._cache = cache
        self._aux_grace = aux_grace
        self._checkers: dict[str, BaseChecker] = {}

    @classmethod
    def from_config(cls, config: PulseboardConfig) -> HealthAggregator:
        return cls(
            build_checker_factories(),
            Transport(),
            build_cache(config.cache),
            aux_grace=config.checks.aux_grace,
        )

    def known_product_types(self) -> set[str]:
        return set(self._factories)

    def checker_for(self, service_type: str) -> BaseChecker | None:
        checker = self._checkers.get(service_type)
        if checker is None:
            factory = self._factories.get(service_type)
            if factory is None:
                return None
            checker = factory(self._transport, self._cache, aux_grace=self._aux_grace)
            self._checkers[service_type] = checker
        return checker

    async def check_instance(self, instance: ServiceInstance) -> HealthResult:
        checker = self.checker_for(instance.service_type)
        if checker is None:
            result = HealthResult(status=Status.ERROR, message=f"Unknown service type: {instance.service_type}")
        else:
            result, _ = await checker.check_health(instance.url, instance.api_key)
        return dataclasses.replace(result, service_id=instance.instance_id)

    async def check_all(self, instances: Iterable[ServiceInstance]) -> list[HealthResult]:
        """Run health checks for all instances concurrently, in input order."""
        instances = list(instances)
        results = await asyncio.gather(
            *(self.check_instance(instance) for instance in instances),
            return_exceptions=True,
        )
        out: list[HealthResult] = []
        for instance, result in zip(instances, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(
                    "Health check for %s (%s) crashed",
                    instance.instance_id,
                    instance.service_type,
                    exc_info=result,
                )
                out.append(
                    HealthResult(
                        status=Status.ERROR,
                        message=f"Health check failed: {result}",
                        service_id=instance.instance_id,
                    )
                )
            else:
                out.append(result)
        return out

    async def aclose(self) -> None:
        """Let in-flight auxiliary lookups finish, then release the transport and cache."""
        for checker in self._checkers.values():
            await checker.drain()
        try:
            await self._transport.aclose()
        except Exception:
            logger.exception("Failed to close HTTP transport")
        await close_cache(self._cache)
