"""Service checker implementations."""

from __future__ import annotations

from pulseboard.checkers.autobrr import AutobrrChecker
from pulseboard.checkers.base import BaseChecker
from pulseboard.checkers.general import GeneralChecker
from pulseboard.checkers.maintainerr import MaintainerrChecker
from pulseboard.checkers.prowlarr import ProwlarrChecker
from pulseboard.checkers.radarr import RadarrChecker
from pulseboard.checkers.sonarr import SonarrChecker


def build_checker_factories() -> dict[str, type[BaseChecker]]:
    """Map each product type tag to the checker class that handles it."""
    return {
        cls.service_type: cls
        for cls in (
            GeneralChecker,
            AutobrrChecker,
            MaintainerrChecker,
            ProwlarrChecker,
            SonarrChecker,
            RadarrChecker,
        )
    }


__all__ = ["BaseChecker", "build_checker_factories"]
