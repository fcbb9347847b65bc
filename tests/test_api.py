"""Tests for FastAPI endpoints."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from pulseboard.api.app import create_app
from pulseboard.checkers import build_checker_factories
from pulseboard.config.models import PulseboardConfig, ServiceEntry
from pulseboard.registry.aggregator import HealthAggregator


@pytest.fixture()
def api_config(sample_config: PulseboardConfig) -> PulseboardConfig:
    services = {
        "homepage": ServiceEntry(type="general", name="Homepage", url="http://homepage/api/healthcheck"),
        "broken": ServiceEntry(type="general", name="Broken", url="http://broken/healthz"),
        "tv": ServiceEntry(type="sonarr", name="Sonarr", url="http://sonarr:8989"),
        "plex": ServiceEntry(type="plex", url="http://plex:32400"),
    }
    return sample_config.model_copy(update={"services": services})


@pytest.fixture()
def client(api_config: PulseboardConfig, upstream, cache) -> TestClient:
    upstream.add("/api/healthcheck", json={"status": "ok"})
    upstream.add("/healthz", 500)
    app = create_app(api_config)
    app.state.aggregator = HealthAggregator(build_checker_factories(), upstream.transport(), cache)
    return TestClient(app)


class TestMeta:
    def test_healthcheck(self, client: TestClient):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestServices:
    def test_list_services(self, client: TestClient):
        resp = client.get("/api/services")
        assert resp.status_code == 200
        data = {item["serviceId"]: item for item in resp.json()}
        assert list(data) == ["homepage", "broken", "tv", "plex"]
        assert data["homepage"]["status"] == "online"
        assert data["homepage"]["name"] == "Homepage"
        assert data["broken"]["status"] == "error"
        assert data["tv"]["status"] == "pending"
        assert data["plex"]["status"] == "error"
        assert data["plex"]["message"] == "Unknown service type: plex"
        assert "lastChecked" in data["homepage"]
        assert "responseTime" in data["homepage"]

    def test_single_service(self, client: TestClient):
        resp = client.get("/api/services/homepage/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["serviceId"] == "homepage"
        assert body["status"] == "online"

    def test_unknown_service(self, client: TestClient):
        resp = client.get("/api/services/nope/health")
        assert resp.status_code == 404

    def test_service_types(self, client: TestClient):
        resp = client.get("/api/service-types")
        assert resp.status_code == 200
        assert resp.json() == ["autobrr", "general", "maintainerr", "prowlarr", "radarr", "sonarr"]


class TestLifespan:
    def test_shutdown_closes_aggregator(self, api_config: PulseboardConfig, upstream, cache):
        asyncio.run(cache.set("http://sonarr:8989_version", "4.0.9", 60))
        app = create_app(api_config)
        app.state.aggregator = HealthAggregator(build_checker_factories(), upstream.transport(), cache)
        with TestClient(app) as c:
            assert c.get("/health").status_code == 200
            assert len(cache) == 1
        assert len(cache) == 0
