"""Exception taxonomy shared by the transport, cache and checkers.

Checkers translate these into a :class:`~pulseboard.registry.models.Status`:

* ``ConfigurationError`` -> ``pending``
* ``ConnectivityError`` -> ``offline``
* ``ProtocolError`` (and ``UpstreamStatusError``) -> ``error``

``CacheError`` never reaches a result; checkers log and drop it.
"""

from __future__ import annotations

from http import HTTPStatus


class PulseboardError(Exception):
    """Base class for all errors raised by pulseboard."""


class ConfigurationError(PulseboardError):
    """The instance is missing a URL or credential."""


class ConnectivityError(PulseboardError):
    """The upstream could not be reached (DNS, refused, TLS, deadline)."""


class ProtocolError(PulseboardError):
    """The upstream answered, but not in a way we understand."""


class UpstreamStatusError(ProtocolError):
    """The upstream answered with an unexpected HTTP status code."""

    def __init__(self, status_code: int, op: str = "request") -> None:
        self.status_code = status_code
        self.op = op
        super().__init__(f"{op}: server returned {status_phrase(status_code)} ({status_code})")


def status_phrase(status_code: int) -> str:
    """Standard reason phrase for *status_code*, e.g. ``Service Unavailable``."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown Status"


class CacheError(PulseboardError):
    """The cache backend failed to read or write a value."""
