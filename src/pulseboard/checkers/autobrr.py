"""Autobrr checker: liveness, version, update, release stats and IRC health."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from pulseboard.cache.base import IRC_SUFFIX, UPDATE_SUFFIX, VERSION_SUFFIX
from pulseboard.checkers.base import BaseChecker
from pulseboard.errors import ConfigurationError, ConnectivityError, ProtocolError
from pulseboard.registry.models import (
    EXTRA_DETAILS,
    EXTRA_ERRORS,
    EXTRA_RESPONSE_TIME,
    EXTRA_STATS,
    EXTRA_UPDATE_AVAILABLE,
    EXTRA_VERSION,
    HealthResult,
    Status,
)
from pulseboard.registry.transport import Auth, api_key_header, response_time_ms

logger = logging.getLogger(__name__)

LIVENESS_PATH = "/api/healthz/liveness"
CONFIG_PATH = "/api/config"
UPDATE_PATH = "/api/updates/latest"
STATS_PATH = "/api/release/stats"
IRC_PATH = "/api/irc"

LIVENESS_TIMEOUT = 15.0
STATS_TIMEOUT = 15.0
IRC_TIMEOUT = 15.0
VERSION_TIMEOUT = 10.0
UPDATE_TIMEOUT = 10.0

IRC_TTL = 5 * 60
# autobrr itself only checks for updates every two hours
VERSION_TTL = 2 * 60 * 60
UPDATE_TTL = 2 * 60 * 60


class IRCStatus(BaseModel):
    name: str = ""
    healthy: bool = False
    enabled: bool = False


class ReleaseStats(BaseModel):
    total_count: int = 0
    filtered_count: int = 0
    filter_rejected_count: int = 0
    push_approved_count: int = 0
    push_rejected_count: int = 0
    push_error_count: int = 0


class VersionResponse(BaseModel):
    version: str = ""


_IRC_LIST = TypeAdapter(list[IRCStatus])


def decode_irc_status(body: bytes | str) -> list[IRCStatus]:
    """Decode an IRC status payload that may be a list or a single object."""
    try:
        return _IRC_LIST.validate_json(body)
    except ValidationError as list_exc:
        try:
            return [IRCStatus.model_validate_json(body)]
        except ValidationError as obj_exc:
            raise ProtocolError(
                "IRC status is neither a list "
                f"({list_exc.error_count()} errors) nor an object ({obj_exc.error_count()} errors)"
            ) from obj_exc


def unhealthy_networks(statuses: list[IRCStatus]) -> list[IRCStatus]:
    """Keep only networks that are enabled but not healthy."""
    return [s for s in statuses if s.enabled and not s.healthy]


class AutobrrChecker(BaseChecker):
    service_type = "autobrr"
    display_name = "Autobrr"
    description = "Monitor and manage your Autobrr instance"
    default_url = "http://localhost:7474"
    health_endpoint = LIVENESS_PATH
    requires_api_key = True

    @staticmethod
    def _auth(api_key: str) -> Auth | None:
        return api_key_header("X-Api-Token", api_key)

    @staticmethod
    def _require(url: str, api_key: str) -> None:
        if not url or not api_key:
            raise ConfigurationError("service not configured: missing URL or API key")

    async def get_release_stats(self, url: str, api_key: str) -> ReleaseStats:
        self._require(url, api_key)
        data = await self.transport.get_json(
            self.endpoint(url, STATS_PATH),
            timeout=STATS_TIMEOUT,
            auth=self._auth(api_key),
            op="release stats",
        )
        try:
            return ReleaseStats.model_validate(data)
        except ValidationError as exc:
            raise ProtocolError(f"failed to decode release stats: {exc}") from exc

    async def get_irc_status(self, url: str, api_key: str) -> list[IRCStatus]:
        """Return the enabled-but-unhealthy IRC networks (empty when all is well)."""
        self._require(url, api_key)

        cached = await self.cache_get(url, IRC_SUFFIX)
        if cached is not None:
            try:
                return _IRC_LIST.validate_json(cached)
            except ValidationError:
                logger.debug("Ignoring unreadable cached IRC status for %s", url)

        resp = await self.transport.request(
            self.endpoint(url, IRC_PATH), timeout=IRC_TIMEOUT, auth=self._auth(api_key)
        )
        resp.raise_for_status("irc status", expected=200)
        unhealthy = unhealthy_networks(decode_irc_status(resp.body))
        await self.cache_set(url, IRC_SUFFIX, _IRC_LIST.dump_json(unhealthy).decode(), IRC_TTL)
        return unhealthy

    async def get_version(self, url: str, api_key: str) -> str:
        cached = await self.cache_get(url, VERSION_SUFFIX)
        if cached is not None:
            return cached

        data = await self.transport.get_json(
            self.endpoint(url, CONFIG_PATH),
            timeout=VERSION_TIMEOUT,
            auth=self._auth(api_key),
            op="version",
        )
        try:
            version = VersionResponse.model_validate(data).version
        except ValidationError as exc:
            raise ProtocolError(f"failed to decode version: {exc}") from exc

        if version:
            await self.cache_set(url, VERSION_SUFFIX, version, VERSION_TTL)
        return version

    async def check_update(self, url: str, api_key: str) -> bool:
        """200 means an update is available, 204 means there is none."""
        cached = await self.cache_get(url, UPDATE_SUFFIX)
        if cached is not None:
            return cached == "true"

        resp = await self.transport.request(
            self.endpoint(url, UPDATE_PATH), timeout=UPDATE_TIMEOUT, auth=self._auth(api_key)
        )
        resp.raise_for_status("update check")
        has_update = resp.status_code != 204
        await self.cache_set(url, UPDATE_SUFFIX, "true" if has_update else "false", UPDATE_TTL)
        return has_update

    async def check_health(self, url: str, api_key: str) -> tuple[HealthResult, int]:
        started = self.begin()
        if not url or not api_key:
            return self.respond(started, Status.PENDING, "Autobrr not configured"), 200

        version_task = self.spawn(self.get_version(url, api_key), f"autobrr-version:{url}")
        update_task = self.spawn(self.check_update(url, api_key), f"autobrr-update:{url}")
        stats_task = self.spawn(self.get_release_stats(url, api_key), f"autobrr-stats:{url}")
        irc_task = self.spawn(self.get_irc_status(url, api_key), f"autobrr-irc:{url}")

        try:
            resp = await self.transport.request(
                self.endpoint(url, self.health_endpoint), timeout=LIVENESS_TIMEOUT, auth=self._auth(api_key)
            )
        except ConnectivityError as exc:
            return self.respond(started, Status.OFFLINE, f"Failed to connect: {exc}"), 200
        except ProtocolError as exc:
            return self.respond(started, Status.ERROR, f"Invalid liveness response: {exc}"), 200

        if resp.status_code != 200:
            return self.respond(started, Status.ERROR, f"Unexpected status code: {resp.status_code}"), 200

        body = resp.text.strip().strip('"')
        if body not in ("healthy", "OK"):
            return self.respond(started, Status.ERROR, f"Autobrr reported unhealthy status: {body}"), 200

        version = await self.join(version_task)
        update = await self.join(update_task)
        stats = await self.settle(stats_task)
        irc = await self.settle(irc_task)

        errors: dict[str, str] = {}
        if not version.ok:
            errors["version"] = version.reason
        if not update.ok:
            errors["update"] = update.reason

        release_stats = stats.value if stats.ok else ReleaseStats()
        if not stats.ok:
            logger.info("Failed to get release stats from %s: %s", url, stats.reason)
            errors["stats"] = stats.reason

        extras: dict[str, Any] = {
            EXTRA_VERSION: version.value if version.ok else "",
            EXTRA_RESPONSE_TIME: response_time_ms(resp),
            EXTRA_UPDATE_AVAILABLE: bool(update.value) if update.ok else False,
            EXTRA_STATS: {"autobrr": release_stats.model_dump()},
        }

        if not irc.ok:
            errors["irc"] = irc.reason
            extras[EXTRA_DETAILS] = {"autobrr": {"irc": [IRCStatus(name="IRC").model_dump()]}}
            extras[EXTRA_ERRORS] = errors
            return (
                self.respond(started, Status.WARNING, "Autobrr is running but IRC status check failed", extras),
                200,
            )

        if errors:
            extras[EXTRA_ERRORS] = errors

        unhealthy: list[IRCStatus] = irc.value
        if unhealthy:
            extras[EXTRA_DETAILS] = {"autobrr": {"irc": [s.model_dump() for s in unhealthy]}}
            return (
                self.respond(
                    started, Status.WARNING, "Autobrr is running but reports unhealthy IRC connections", extras
                ),
                200,
            )

        return self.respond(started, Status.ONLINE, "Autobrr is running", extras), 200
