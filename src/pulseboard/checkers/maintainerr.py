"""Maintainerr checker and collection accessor."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from pulseboard.cache.base import VERSION_SUFFIX
from pulseboard.checkers.base import BaseChecker
from pulseboard.errors import ConfigurationError, ConnectivityError, ProtocolError, status_phrase
from pulseboard.registry.models import (
    EXTRA_ERRORS,
    EXTRA_RESPONSE_TIME,
    EXTRA_UPDATE_AVAILABLE,
    EXTRA_VERSION,
    HealthResult,
    Status,
)
from pulseboard.registry.transport import api_key_header, response_time_ms

STATUS_PATH = "/api/app/status"
COLLECTIONS_PATH = "/api/collections"

STATUS_TIMEOUT = 10.0
VERSION_TIMEOUT = 5.0
COLLECTIONS_TIMEOUT = 10.0
VERSION_TTL = 60 * 60


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusResponse(_CamelModel):
    version: str = ""
    update_available: bool = False


class Media(_CamelModel):
    id: int = 0
    collection_id: int = 0
    plex_id: int = 0
    tmdb_id: int = 0
    add_date: str = ""
    image_path: str = Field("", alias="image_path")
    is_manual: bool = False


class Collection(_CamelModel):
    id: int = 0
    plex_id: int = 0
    library_id: int = 0
    title: str = ""
    description: str = ""
    is_active: bool = False
    arr_action: int = 0
    visible_on_home: bool = False
    delete_after_days: int = 0
    type: int = 0
    add_date: str = ""
    media: list[Media] = Field(default_factory=list)


_COLLECTIONS = TypeAdapter(list[Collection])


def decode_collections(body: bytes | str) -> list[Collection]:
    """Decode collections that may come back as a list or a single object."""
    try:
        return _COLLECTIONS.validate_json(body)
    except ValidationError as list_exc:
        try:
            return [Collection.model_validate_json(body)]
        except ValidationError as obj_exc:
            raise ProtocolError(
                "collections response is neither a list "
                f"({list_exc.error_count()} errors) nor an object ({obj_exc.error_count()} errors)"
            ) from obj_exc


def _status_message(status_code: int) -> str:
    phrase = status_phrase(status_code)
    if status_code in (502, 503, 504):
        return f"Service is temporarily unavailable ({status_code} {phrase})"
    if status_code == 401:
        return "Invalid API key"
    if status_code == 403:
        return "Access forbidden"
    if status_code == 404:
        return "Service endpoint not found"
    return f"Server returned {phrase} ({status_code})"


class MaintainerrChecker(BaseChecker):
    service_type = "maintainerr"
    display_name = "Maintainerr"
    description = "Monitor and manage your Maintainerr instance"
    default_url = "http://localhost:6246"
    health_endpoint = STATUS_PATH

    async def get_version(self, url: str, api_key: str) -> str:
        cached = await self.cache_get(url, VERSION_SUFFIX)
        if cached is not None:
            return cached

        data = await self.transport.get_json(
            self.endpoint(url, STATUS_PATH), timeout=VERSION_TIMEOUT, op="version"
        )
        try:
            version = StatusResponse.model_validate(data).version
        except ValidationError as exc:
            raise ProtocolError(f"failed to parse status response: {exc}") from exc

        if version:
            await self.cache_set(url, VERSION_SUFFIX, version, VERSION_TTL)
        return version

    async def get_collections(self, url: str, api_key: str) -> list[Collection]:
        """Return the active rule collections."""
        if not url:
            raise ConfigurationError("URL is required")
        if not api_key:
            raise ConfigurationError("API key is required")

        resp = await self.transport.request(
            self.endpoint(url, COLLECTIONS_PATH),
            timeout=COLLECTIONS_TIMEOUT,
            auth=api_key_header("X-Api-Key", api_key),
        )
        resp.raise_for_status("get collections", expected=200)
        return [c for c in decode_collections(resp.body) if c.is_active]

    async def check_health(self, url: str, api_key: str) -> tuple[HealthResult, int]:
        started = self.begin()
        if not url:
            return self.respond(started, Status.PENDING, "Maintainerr not configured"), 200

        version_task = self.spawn(self.get_version(url, api_key), f"maintainerr-version:{url}")

        try:
            resp = await self.transport.request(self.endpoint(url, self.health_endpoint), timeout=STATUS_TIMEOUT)
        except ConnectivityError as exc:
            return self.respond(started, Status.OFFLINE, f"Failed to connect: {exc}"), 200
        except ProtocolError as exc:
            return self.respond(started, Status.ERROR, f"Failed to read status response: {exc}"), 200

        if not resp.ok:
            return self.respond(started, Status.ERROR, _status_message(resp.status_code)), 200

        try:
            status = StatusResponse.model_validate_json(resp.body)
        except ValidationError as exc:
            return (
                self.respond(
                    started, Status.ERROR, f"Failed to parse status response: {exc.error_count()} errors"
                ),
                200,
            )

        version = await self.join(version_task)
        extras: dict[str, Any] = {
            EXTRA_VERSION: version.value if version.ok else status.version,
            EXTRA_UPDATE_AVAILABLE: status.update_available,
            EXTRA_RESPONSE_TIME: response_time_ms(resp),
        }
        if not version.ok:
            extras[EXTRA_ERRORS] = {"version": version.reason}

        return self.respond(started, Status.ONLINE, "Healthy", extras), 200
