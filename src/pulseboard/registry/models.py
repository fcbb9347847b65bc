"""Data models for service instances and their health."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Mapping

# Extras keys the dashboard reads; renaming any of these breaks the UI.
EXTRA_VERSION = "version"
EXTRA_UPDATE_AVAILABLE = "updateAvailable"
EXTRA_RESPONSE_TIME = "responseTime"
EXTRA_STATS = "stats"
EXTRA_DETAILS = "details"
EXTRA_ERRORS = "errors"


class Status(str, Enum):
    PENDING = "pending"
    OFFLINE = "offline"
    ERROR = "error"
    WARNING = "warning"
    ONLINE = "online"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ServiceInstance:
    """One configured upstream the aggregator polls."""

    instance_id: str
    service_type: str
    url: str = ""
    api_key: str = ""
    display_name: str = ""


@dataclass(frozen=True)
class HealthResult:
    """Result of a single health check. Never mutated once returned."""

    status: Status
    message: str = ""
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    response_time_ms: float = 0.0
    extras: Mapping[str, Any] = field(default_factory=dict)
    service_id: str = ""

    @property
    def version(self) -> str:
        return str(self.extras.get(EXTRA_VERSION) or "")

    @property
    def update_available(self) -> bool:
        return bool(self.extras.get(EXTRA_UPDATE_AVAILABLE, False))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "serviceId": self.service_id,
            "status": self.status.value,
            "message": self.message,
            "lastChecked": self.started_at.isoformat(),
            EXTRA_RESPONSE_TIME: round(self.response_time_ms),
        }
        payload.update(self.extras)
        return payload
