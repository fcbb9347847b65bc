"""HTTP transport shared by all checkers.

Every upstream call goes through :meth:`Transport.request`, which bounds the
whole exchange (connect, send, body read) by a caller-supplied deadline and
splits failures into two kinds:

* ``ConnectivityError``: nothing usable came back (DNS, refused, TLS, timeout,
  redirect loop).
* ``ProtocolError``: a response arrived but is unusable (status, body, encoding).
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from pulseboard.errors import ConnectivityError, ProtocolError, UpstreamStatusError


@dataclass(frozen=True)
class Auth:
    """A single header carrying a credential."""

    header: str
    value: str


def bearer(token: str) -> Auth | None:
    return Auth("Authorization", f"Bearer {token}") if token else None


def api_key_header(name: str, key: str) -> Auth | None:
    return Auth(name, key) if key else None


@dataclass(frozen=True)
class UpstreamResponse:
    """A fully read upstream response."""

    status_code: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def raise_for_status(self, op: str = "request", expected: int | None = None) -> None:
        if expected is not None and self.status_code != expected:
            raise UpstreamStatusError(self.status_code, op)
        if not self.ok:
            raise UpstreamStatusError(self.status_code, op)

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except ValueError as exc:
            raise ProtocolError(f"invalid JSON: {exc}; body: {_snippet(self.text)}") from exc


def _snippet(text: str, limit: int = 200) -> str:
    text = text.strip()
    return text if len(text) <= limit else text[:limit] + "..."


def response_time_ms(response: UpstreamResponse) -> int:
    """Prefer the upstream's own X-Response-Time (ms), else our measurement."""
    header = response.headers.get("x-response-time", "").strip().lower().removesuffix("ms")
    try:
        reported = float(header)
    except ValueError:
        reported = response.elapsed_ms
    return max(0, round(reported))


class Transport:
    """Executes upstream requests with a deadline and an optional auth header."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)

    async def request(
        self,
        url: str,
        *,
        timeout: float,
        auth: Auth | None = None,
        headers: Mapping[str, str] | None = None,
        method: str = "GET",
    ) -> UpstreamResponse:
        merged: dict[str, str] = {"Accept": "*/*"}
        if headers:
            merged.update(headers)
        if auth is not None:
            merged[auth.header] = auth.value

        start = time.monotonic()
        try:
            resp = await asyncio.wait_for(
                self._client.request(method, url, headers=merged, timeout=timeout),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise ConnectivityError(f"timed out after {timeout:g}s") from exc
        except httpx.DecodingError as exc:
            raise ProtocolError(f"undecodable response body: {exc}") from exc
        except httpx.RequestError as exc:
            # TransportError and TooManyRedirects alike: nothing usable came back
            raise ConnectivityError(f"{type(exc).__name__}: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise ConnectivityError(f"invalid URL {url!r}: {exc}") from exc
        elapsed = (time.monotonic() - start) * 1000

        return UpstreamResponse(
            status_code=resp.status_code,
            body=resp.content,
            headers=resp.headers,
            elapsed_ms=round(elapsed, 1),
        )

    async def get_json(
        self,
        url: str,
        *,
        timeout: float,
        auth: Auth | None = None,
        op: str = "request",
    ) -> Any:
        """GET *url*, require a 200, and decode the body as JSON."""
        resp = await self.request(url, timeout=timeout, auth=auth)
        resp.raise_for_status(op, expected=200)
        return resp.json()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
