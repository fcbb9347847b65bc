"""Sonarr checker."""

from __future__ import annotations

from typing import Any

from pulseboard.checkers.arr import arr_get_version, arr_health_check, arr_queue_stats
from pulseboard.checkers.base import BaseChecker
from pulseboard.registry.models import HealthResult

API_VERSION = "v3"


class SonarrChecker(BaseChecker):
    service_type = "sonarr"
    display_name = "Sonarr"
    description = "Monitor and manage your Sonarr instance"
    default_url = "http://localhost:8989"
    health_endpoint = f"/api/{API_VERSION}/health"
    requires_api_key = True

    async def get_version(self, url: str, api_key: str) -> str:
        return await arr_get_version(self, url, api_key, api_version=API_VERSION)

    async def get_queue_stats(self, url: str, api_key: str) -> dict[str, Any]:
        return await arr_queue_stats(self, url, api_key, api_version=API_VERSION)

    async def check_health(self, url: str, api_key: str) -> tuple[HealthResult, int]:
        return await arr_health_check(self, url, api_key, api_version=API_VERSION, stats=self.get_queue_stats)
