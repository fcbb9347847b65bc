"""Tests for the Pulseboard CLI commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from pulseboard.cli import app
from pulseboard.config.models import PulseboardConfig
from pulseboard.registry.models import HealthResult, ServiceInstance, Status

runner = CliRunner()


class TestStatusCommand:
    def test_status_success(self, sample_config: PulseboardConfig):
        rows = [
            (
                ServiceInstance("autobrr", "autobrr", url="http://localhost:7474", display_name="Autobrr"),
                HealthResult(
                    status=Status.WARNING,
                    message="Autobrr is running but reports unhealthy IRC connections",
                    response_time_ms=12,
                    extras={"version": "1.40.0", "updateAvailable": True},
                ),
            ),
            (
                ServiceInstance("homepage", "general", url="http://localhost:3000", display_name="Homepage"),
                HealthResult(status=Status.OFFLINE, message="Failed to connect"),
            ),
        ]
        with (
            patch("pulseboard.config.loader.load_config", return_value=sample_config),
            patch("pulseboard.cli.collect_results", AsyncMock(return_value=rows)),
        ):
            result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Autobrr" in result.output
        assert "Homepage" in result.output
        assert "1.40.0" in result.output
        assert "offline" in result.output

    def test_status_no_config(self):
        with patch("pulseboard.config.loader.load_config", side_effect=FileNotFoundError("No config")):
            result = runner.invoke(app, ["status"])
        assert result.exit_code == 1

    def test_status_invalid_config(self):
        with patch("pulseboard.config.loader.load_config", side_effect=ValueError("Invalid configuration")):
            result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestTypesCommand:
    def test_lists_all_types(self):
        result = runner.invoke(app, ["types"])
        assert result.exit_code == 0
        for name in ("general", "autobrr", "maintainerr", "prowlarr", "sonarr", "radarr"):
            assert name in result.output


class TestServeCommand:
    def test_serve_runs_uvicorn(self):
        with patch("uvicorn.run") as run:
            result = runner.invoke(app, ["serve", "--port", "9000"])
        assert result.exit_code == 0
        run.assert_called_once_with("pulseboard.api.app:app", host="0.0.0.0", port=9000, reload=False)


class TestConfigValidate:
    def test_valid(self, config_file: Path):
        result = runner.invoke(app, ["config", "validate", "--path", str(config_file)])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_unknown_type(self, tmp_path: Path):
        path = tmp_path / ".pulseboard.yaml"
        path.write_text("services:\n  plex:\n    type: plex\n    url: http://plex:32400\n")
        result = runner.invoke(app, ["config", "validate", "--path", str(path)])
        assert result.exit_code == 1
        assert "unknown type 'plex'" in result.output

    def test_invalid_url(self, tmp_path: Path):
        path = tmp_path / ".pulseboard.yaml"
        path.write_text("services:\n  home:\n    type: general\n    url: localhost\n")
        result = runner.invoke(app, ["config", "validate", "--path", str(path)])
        assert result.exit_code == 1
        assert "invalid URL" in result.output

    def test_missing_key_warns(self, tmp_path: Path):
        path = tmp_path / ".pulseboard.yaml"
        path.write_text("services:\n  tv:\n    type: sonarr\n    url: http://sonarr:8989\n")
        result = runner.invoke(app, ["config", "validate", "--path", str(path)])
        assert result.exit_code == 0
        assert "needs an api_key" in result.output

    def test_optional_key_does_not_warn(self, tmp_path: Path):
        path = tmp_path / ".pulseboard.yaml"
        path.write_text("services:\n  rules:\n    type: maintainerr\n    url: http://maintainerr:6246\n")
        result = runner.invoke(app, ["config", "validate", "--path", str(path)])
        assert result.exit_code == 0
        assert "needs an api_key" not in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["config", "validate", "--path", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1


class TestConfigShow:
    def test_show(self, sample_config: PulseboardConfig):
        with patch("pulseboard.config.loader.load_config", return_value=sample_config):
            result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Pulseboard" in result.output
        assert "autobrr" in result.output
        assert "api key set" in result.output
        assert "memory" in result.output
