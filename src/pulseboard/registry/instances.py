"""Read access to the configured service instances."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pulseboard.config.models import PulseboardConfig
from pulseboard.registry.models import ServiceInstance


@runtime_checkable
class InstanceSource(Protocol):
    """Anything that can list the instances to poll. Never mutated by us."""

    async def list_instances(self) -> list[ServiceInstance]: ...


class ConfigInstanceSource:
    """Instances declared under ``services:`` in .pulseboard.yaml."""

    def __init__(self, config: PulseboardConfig) -> None:
        self._instances = [entry.to_instance(key) for key, entry in config.services.items()]

    async def list_instances(self) -> list[ServiceInstance]:
        return list(self._instances)

    def get(self, instance_id: str) -> ServiceInstance | None:
        for instance in self._instances:
            if instance.instance_id == instance_id:
                return instance
        return None
