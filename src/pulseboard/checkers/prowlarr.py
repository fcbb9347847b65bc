"""Prowlarr checker."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from pulseboard.checkers.arr import STATS_TIMEOUT, arr_auth, arr_get_version, arr_health_check
from pulseboard.checkers.base import BaseChecker
from pulseboard.errors import ProtocolError
from pulseboard.registry.models import HealthResult

API_VERSION = "v1"


class IndexerStat(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    indexer_id: int = 0
    indexer_name: str = ""
    number_of_queries: int = 0
    number_of_grabs: int = 0
    number_of_failed_queries: int = 0
    number_of_failed_grabs: int = 0


class IndexerStatsResponse(BaseModel):
    indexers: list[IndexerStat] = Field(default_factory=list)


class ProwlarrChecker(BaseChecker):
    service_type = "prowlarr"
    display_name = "Prowlarr"
    description = "Monitor and manage your Prowlarr instance"
    default_url = "http://localhost:9696"
    health_endpoint = f"/api/{API_VERSION}/health"
    requires_api_key = True

    async def get_version(self, url: str, api_key: str) -> str:
        return await arr_get_version(self, url, api_key, api_version=API_VERSION)

    async def get_indexer_stats(self, url: str, api_key: str) -> IndexerStatsResponse:
        data = await self.transport.get_json(
            self.endpoint(url, f"/api/{API_VERSION}/indexerstats"),
            timeout=STATS_TIMEOUT,
            auth=arr_auth(api_key),
            op="get indexer stats",
        )
        try:
            return IndexerStatsResponse.model_validate(data)
        except ValidationError as exc:
            raise ProtocolError(f"failed to parse indexer stats: {exc}") from exc

    async def summarize_indexer_stats(self, url: str, api_key: str) -> dict[str, Any]:
        stats = await self.get_indexer_stats(url, api_key)
        return {
            "indexers": len(stats.indexers),
            "queries": sum(i.number_of_queries for i in stats.indexers),
            "grabs": sum(i.number_of_grabs for i in stats.indexers),
            "failedQueries": sum(i.number_of_failed_queries for i in stats.indexers),
            "failedGrabs": sum(i.number_of_failed_grabs for i in stats.indexers),
        }

    async def check_health(self, url: str, api_key: str) -> tuple[HealthResult, int]:
        return await arr_health_check(
            self, url, api_key, api_version=API_VERSION, stats=self.summarize_indexer_stats
        )
