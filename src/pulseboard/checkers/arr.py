"""Health algorithm shared by the *arr applications (Prowlarr, Sonarr, Radarr).

The arr products expose the same shape of API under ``/api/<version>``:

* ``/health`` lists current health issues (possibly as a bare object when
  there is only one),
* ``/system/status`` carries the version,
* updates are reported as a health issue whose source is ``UpdateCheck``.

Checkers call :func:`arr_health_check` and :func:`arr_get_version` rather than
inheriting them.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from pulseboard.cache.base import VERSION_SUFFIX
from pulseboard.checkers.base import BaseChecker
from pulseboard.errors import ConnectivityError, ProtocolError
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

HEALTH_TIMEOUT = 10.0
VERSION_TIMEOUT = 5.0
STATS_TIMEOUT = 5.0
VERSION_TTL = 60 * 60

UPDATE_SOURCE = "UpdateCheck"

StatsFetcher = Callable[[str, str], Awaitable[dict[str, Any] | None]]


class HealthIssue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str = ""
    type: str = ""
    message: str = ""
    wiki_url: str = Field("", alias="wikiUrl")


class SystemStatus(BaseModel):
    version: str = ""


_ISSUES = TypeAdapter(list[HealthIssue])


def decode_health_issues(body: bytes | str) -> list[HealthIssue]:
    """Decode a health payload that may be a list of issues or a single issue."""
    try:
        return _ISSUES.validate_json(body)
    except ValidationError as list_exc:
        try:
            return [HealthIssue.model_validate_json(body)]
        except ValidationError as obj_exc:
            raise ProtocolError(
                "health response is neither a list "
                f"({list_exc.error_count()} errors) nor an object ({obj_exc.error_count()} errors)"
            ) from obj_exc


def arr_auth(api_key: str) -> Auth | None:
    return api_key_header("X-Api-Key", api_key)


async def arr_get_version(checker: BaseChecker, url: str, api_key: str, *, api_version: str) -> str:
    """Return the version from ``/system/status``, cached for an hour."""
    cached = await checker.cache_get(url, VERSION_SUFFIX)
    if cached is not None:
        return cached

    data = await checker.transport.get_json(
        checker.endpoint(url, f"/api/{api_version}/system/status"),
        timeout=VERSION_TIMEOUT,
        auth=arr_auth(api_key),
        op="get system status",
    )
    try:
        version = SystemStatus.model_validate(data).version
    except ValidationError as exc:
        raise ProtocolError(f"failed to parse system status: {exc}") from exc

    if version:
        await checker.cache_set(url, VERSION_SUFFIX, version, VERSION_TTL)
    return version


async def arr_health_check(
    checker: BaseChecker,
    url: str,
    api_key: str,
    *,
    api_version: str,
    stats: StatsFetcher | None = None,
) -> tuple[HealthResult, int]:
    started = checker.begin()
    name = checker.display_name
    product = checker.service_type

    if not url or not api_key:
        return checker.respond(started, Status.PENDING, f"{name} not configured"), 200

    version_task = checker.spawn(checker.get_version(url, api_key), f"{product}-version:{url}")
    stats_task = checker.spawn(stats(url, api_key), f"{product}-stats:{url}") if stats else None

    try:
        resp = await checker.transport.request(
            checker.endpoint(url, checker.health_endpoint or f"/api/{api_version}/health"),
            timeout=HEALTH_TIMEOUT,
            auth=arr_auth(api_key),
        )
    except ConnectivityError as exc:
        return checker.respond(started, Status.OFFLINE, f"Failed to connect: {exc}"), 200
    except ProtocolError as exc:
        return checker.respond(started, Status.ERROR, f"Failed to read health response: {exc}"), 200

    if resp.status_code == 401:
        return checker.respond(started, Status.ERROR, "Invalid API key"), 200
    if not resp.ok:
        return checker.respond(started, Status.ERROR, f"Unexpected status code: {resp.status_code}"), 200

    try:
        issues = decode_health_issues(resp.body)
    except ProtocolError as exc:
        return checker.respond(started, Status.ERROR, f"Failed to parse health response: {exc}"), 200

    version = await checker.join(version_task)
    errors: dict[str, str] = {}
    if not version.ok:
        errors["version"] = version.reason

    problems = [i for i in issues if i.source != UPDATE_SOURCE]
    extras: dict[str, Any] = {
        EXTRA_VERSION: version.value if version.ok else "",
        EXTRA_RESPONSE_TIME: response_time_ms(resp),
        EXTRA_UPDATE_AVAILABLE: any(i.source == UPDATE_SOURCE for i in issues),
    }

    if stats_task is not None:
        outcome = await checker.settle(stats_task)
        if outcome.ok and outcome.value is not None:
            extras[EXTRA_STATS] = {product: outcome.value}
        elif not outcome.ok:
            errors["stats"] = outcome.reason

    if errors:
        extras[EXTRA_ERRORS] = errors

    if problems:
        extras[EXTRA_DETAILS] = {product: {"health": [p.model_dump(by_alias=True) for p in problems]}}
        message = "; ".join(p.message for p in problems if p.message) or f"{name} reports health issues"
        return checker.respond(started, Status.WARNING, message, extras), 200

    return checker.respond(started, Status.ONLINE, f"{name} is running", extras), 200


class QueuePage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_records: int = Field(0, alias="totalRecords")


async def arr_queue_stats(checker: BaseChecker, url: str, api_key: str, *, api_version: str) -> dict[str, Any]:
    """Return ``{"queue": <items in the download queue>}``."""
    data = await checker.transport.get_json(
        checker.endpoint(url, f"/api/{api_version}/queue?pageSize=1"),
        timeout=STATS_TIMEOUT,
        auth=arr_auth(api_key),
        op="get queue",
    )
    try:
        page = QueuePage.model_validate(data)
    except ValidationError as exc:
        raise ProtocolError(f"failed to parse queue: {exc}") from exc
    return {"queue": page.total_records}
