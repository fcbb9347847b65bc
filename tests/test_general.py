"""Tests for the generic HTTP checker."""

from __future__ import annotations

import pytest

from pulseboard.checkers.general import GeneralChecker, map_status
from pulseboard.registry.models import Status

URL = "http://svc/healthz"


def _checker(upstream, cache) -> GeneralChecker:
    return GeneralChecker(upstream.transport(), cache)


class TestMapStatus:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("OK", Status.ONLINE),
            ("healthy", Status.ONLINE),
            (" Online ", Status.ONLINE),
            ("unhealthy", Status.OFFLINE),
            ("error", Status.OFFLINE),
            ("warning", Status.WARNING),
            ("all good", Status.UNKNOWN),
        ],
    )
    def test_synonyms(self, raw, expected):
        assert map_status(raw) == expected


class TestGeneralChecker:
    @pytest.mark.asyncio
    async def test_json_ok(self, upstream, cache):
        upstream.add("/healthz", json={"status": "OK", "message": "all good"})
        result, code = await _checker(upstream, cache).check_health(URL, "")
        assert code == 200
        assert result.status == Status.ONLINE
        assert result.message == "all good"
        assert result.extras["responseTime"] >= 0

    @pytest.mark.asyncio
    async def test_json_without_status_is_online(self, upstream, cache):
        upstream.add("/healthz", json={"uptime": 12})
        result, _ = await _checker(upstream, cache).check_health(URL, "")
        assert result.status == Status.ONLINE

    @pytest.mark.asyncio
    async def test_json_unhealthy(self, upstream, cache):
        upstream.add("/healthz", json={"status": "unhealthy", "message": "db down"})
        result, _ = await _checker(upstream, cache).check_health(URL, "")
        assert result.status == Status.OFFLINE
        assert result.message == "db down"

    @pytest.mark.asyncio
    async def test_json_unrecognized_status(self, upstream, cache):
        upstream.add("/healthz", json={"status": "degraded"})
        result, _ = await _checker(upstream, cache).check_health(URL, "")
        assert result.status == Status.UNKNOWN

    @pytest.mark.asyncio
    async def test_plain_ok(self, upstream, cache):
        upstream.add("/healthz", text="ok\n")
        result, _ = await _checker(upstream, cache).check_health(URL, "")
        assert result.status == Status.ONLINE

    @pytest.mark.asyncio
    async def test_plain_unexpected(self, upstream, cache):
        upstream.add("/healthz", text="nope")
        result, _ = await _checker(upstream, cache).check_health(URL, "")
        assert result.status == Status.ERROR
        assert result.message == "Unexpected response: nope"

    @pytest.mark.asyncio
    async def test_server_error(self, upstream, cache):
        upstream.add("/healthz", 500, json={"status": "ok"})
        result, code = await _checker(upstream, cache).check_health(URL, "")
        assert code == 500
        assert result.status == Status.ERROR
        assert result.message == "Unexpected status code: 500"

    @pytest.mark.asyncio
    async def test_connection_refused(self, upstream, cache):
        upstream.refuse("/healthz")
        result, code = await _checker(upstream, cache).check_health(URL, "")
        assert code == 503
        assert result.status == Status.OFFLINE
        assert result.message.startswith("Failed to connect")

    @pytest.mark.asyncio
    async def test_redirect_loop_is_offline(self, upstream, cache):
        upstream.add("/healthz", 302, headers={"Location": URL})
        result, code = await _checker(upstream, cache).check_health(URL, "")
        assert code == 503
        assert result.status == Status.OFFLINE
        assert "TooManyRedirects" in result.message

    @pytest.mark.asyncio
    async def test_corrupt_body_is_error(self, upstream, cache):
        upstream.add("/healthz", text="not gzip", headers={"Content-Encoding": "gzip"})
        result, code = await _checker(upstream, cache).check_health(URL, "")
        assert code == 502
        assert result.status == Status.ERROR
        assert result.message.startswith("Invalid response")

    @pytest.mark.asyncio
    async def test_empty_url_is_pending(self, upstream, cache):
        result, code = await _checker(upstream, cache).check_health("", "")
        assert code == 200
        assert result.status == Status.PENDING
        assert upstream.total_calls == 0

    @pytest.mark.asyncio
    async def test_bearer_token(self, upstream, cache):
        upstream.add("/healthz", text="OK")
        await _checker(upstream, cache).check_health(URL, "secret")
        assert upstream.last_request("/healthz").headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_no_auth_without_key(self, upstream, cache):
        upstream.add("/healthz", text="OK")
        await _checker(upstream, cache).check_health(URL, "")
        assert "Authorization" not in upstream.last_request("/healthz").headers

    @pytest.mark.asyncio
    async def test_upstream_response_time_header(self, upstream, cache):
        upstream.add("/healthz", text="OK", headers={"X-Response-Time": "42ms"})
        result, _ = await _checker(upstream, cache).check_health(URL, "")
        assert result.extras["responseTime"] == 42
        assert result.response_time_ms == 42.0

    @pytest.mark.asyncio
    async def test_version_is_empty(self, upstream, cache):
        assert await _checker(upstream, cache).get_version(URL, "") == ""
        assert upstream.total_calls == 0
