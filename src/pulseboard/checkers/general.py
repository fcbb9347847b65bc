"""Generic checker for any HTTP endpoint without a known product schema."""

from __future__ import annotations

import json
from typing import Any

from pulseboard.checkers.base import BaseChecker
from pulseboard.errors import ConnectivityError, ProtocolError
from pulseboard.registry.models import EXTRA_RESPONSE_TIME, HealthResult, Status
from pulseboard.registry.transport import bearer, response_time_ms

GENERAL_TIMEOUT = 10.0

_STATUS_SYNONYMS: dict[str, Status] = {
    "healthy": Status.ONLINE,
    "ok": Status.ONLINE,
    "online": Status.ONLINE,
    "unhealthy": Status.OFFLINE,
    "error": Status.OFFLINE,
    "offline": Status.OFFLINE,
    "warning": Status.WARNING,
}


def map_status(value: str) -> Status:
    """Map an upstream's free-form status word onto our Status."""
    return _STATUS_SYNONYMS.get(value.strip().lower(), Status.UNKNOWN)


class GeneralChecker(BaseChecker):
    service_type = "general"
    description = "Generic health check service for any URL endpoint"

    async def check_health(self, url: str, api_key: str) -> tuple[HealthResult, int]:
        started = self.begin()
        if not url:
            return self.respond(started, Status.PENDING, "URL is required"), 200

        try:
            resp = await self.transport.request(url, timeout=GENERAL_TIMEOUT, auth=bearer(api_key))
        except ConnectivityError as exc:
            return self.respond(started, Status.OFFLINE, f"Failed to connect: {exc}"), 503
        except ProtocolError as exc:
            return self.respond(started, Status.ERROR, f"Invalid response: {exc}"), 502

        extras: dict[str, Any] = {EXTRA_RESPONSE_TIME: response_time_ms(resp)}
        if not resp.ok:
            return (
                self.respond(started, Status.ERROR, f"Unexpected status code: {resp.status_code}", extras),
                resp.status_code,
            )

        try:
            payload = json.loads(resp.body)
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            status = Status.ONLINE
            raw_status = payload.get("status")
            if isinstance(raw_status, str):
                status = map_status(raw_status)
            message = payload.get("message")
            return (
                self.respond(started, status, message if isinstance(message, str) else "", extras),
                resp.status_code,
            )

        text = resp.text.strip()
        if text.lower() == "ok":
            return self.respond(started, Status.ONLINE, "", extras), resp.status_code
        return self.respond(started, Status.ERROR, f"Unexpected response: {text}", extras), resp.status_code

    async def get_version(self, url: str, api_key: str) -> str:
        # Arbitrary endpoints expose no version.
        return ""
