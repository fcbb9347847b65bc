"""Pydantic models for Pulseboard configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from pulseboard.registry.models import ServiceInstance


class RedisConfig(BaseModel):
    """Connection settings for the Redis cache backend."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str = ""


class CacheConfig(BaseModel):
    """Which cache backend to use and how to address it."""

    type: Literal["memory", "redis"] = "memory"
    key_prefix: str = "pulseboard:"
    sweep_interval: float = 60.0
    redis: RedisConfig = Field(default_factory=RedisConfig)


class CheckConfig(BaseModel):
    """Tuning knobs shared by all checkers."""

    aux_grace: float = 2.0  # seconds a check waits on version/update lookups


class LoggingConfig(BaseModel):
    level: str = "INFO"


class ServiceEntry(BaseModel):
    """Configuration for one monitored service instance."""

    type: str
    name: str = ""
    url: str = ""
    api_key: str = ""

    def to_instance(self, instance_id: str) -> ServiceInstance:
        return ServiceInstance(
            instance_id=instance_id,
            service_type=self.type,
            url=self.url,
            api_key=self.api_key,
            display_name=self.name or instance_id,
        )


class PulseboardIdentity(BaseModel):
    """Top-level identity metadata."""

    name: str = "Pulseboard"
    version: str = "0.1.0"


class PulseboardConfig(BaseModel):
    """Root configuration model for .pulseboard.yaml."""

    pulseboard: PulseboardIdentity = Field(default_factory=PulseboardIdentity)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    checks: CheckConfig = Field(default_factory=CheckConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    services: dict[str, ServiceEntry] = Field(default_factory=dict)
