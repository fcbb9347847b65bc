"""Pulseboard CLI entry point."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from pulseboard.config.models import PulseboardConfig
    from pulseboard.registry.models import HealthResult, ServiceInstance

app = typer.Typer(
    name="pulseboard",
    help="Pulseboard — health at a glance for your self-hosted services",
    no_args_is_help=True,
)
console = Console()

STATUS_STYLES = {
    "online": "green",
    "warning": "yellow",
    "pending": "dim",
    "unknown": "magenta",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


state: dict[str, str | None] = {"log_level": None}


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Logging level (default: from config)"),
) -> None:
    state["log_level"] = log_level
    configure_logging(log_level or "WARNING")


def _load(path: Path | None = None) -> PulseboardConfig:
    from pulseboard.config.loader import load_config

    try:
        config = load_config(path=path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    if state["log_level"] is None:
        configure_logging(config.logging.level)
    return config


async def collect_results(config: PulseboardConfig) -> list[tuple[ServiceInstance, HealthResult]]:
    """Check every configured instance once and release resources afterwards."""
    from pulseboard.registry.aggregator import HealthAggregator
    from pulseboard.registry.instances import ConfigInstanceSource

    source = ConfigInstanceSource(config)
    aggregator = HealthAggregator.from_config(config)
    try:
        instances = await source.list_instances()
        results = await aggregator.check_all(instances)
    finally:
        await aggregator.aclose()
    return list(zip(instances, results))


@app.command()
def status(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .pulseboard.yaml"),
) -> None:
    """Check all configured services and print their health."""
    config = _load(path)
    rows = asyncio.run(collect_results(config))

    table = Table(title="Pulseboard Service Status")
    table.add_column("Service", style="bold")
    table.add_column("Type")
    table.add_column("URL")
    table.add_column("Status")
    table.add_column("Version")
    table.add_column("Response")
    table.add_column("Message")

    for instance, result in rows:
        label = result.status.value
        style = STATUS_STYLES.get(label, "red")
        version = result.version or "—"
        if result.update_available:
            version += " [yellow](update)[/yellow]"
        response = f"{result.response_time_ms:.0f}ms" if result.response_time_ms else "—"
        table.add_row(
            instance.display_name,
            instance.service_type,
            instance.url or "—",
            f"[{style}]{label}[/{style}]",
            version,
            response,
            result.message,
        )

    console.print(table)


@app.command("types")
def list_types() -> None:
    """List the service types Pulseboard knows how to check."""
    from pulseboard.checkers import build_checker_factories

    table = Table(title="Supported Service Types")
    table.add_column("Type", style="bold", no_wrap=True)
    table.add_column("Default URL")
    table.add_column("Health endpoint")
    table.add_column("API key")
    table.add_column("Description")
    for key, cls in sorted(build_checker_factories().items()):
        table.add_row(
            key,
            cls.default_url or "—",
            cls.health_endpoint or "(service URL)",
            "required" if cls.requires_api_key else "optional",
            cls.description,
        )
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
) -> None:
    """Start the Pulseboard API server."""
    import uvicorn

    console.print(f"[bold]Pulseboard[/bold] starting on http://{host}:{port}")
    uvicorn.run("pulseboard.api.app:app", host=host, port=port, reload=False)


config_app = typer.Typer(name="config", help="Configuration commands")
app.add_typer(config_app)


@config_app.command("validate")
def config_validate(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .pulseboard.yaml"),
) -> None:
    """Validate configuration file."""
    from urllib.parse import urlparse

    import yaml

    from pulseboard.checkers import build_checker_factories
    from pulseboard.config.loader import load_config

    try:
        config = load_config(path=path)
        console.print("[green]✓[/green] YAML parses correctly")
        console.print("[green]✓[/green] Pydantic validation passes")
    except FileNotFoundError as exc:
        console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1)
    except yaml.YAMLError as exc:
        console.print(f"[red]✗ YAML parsing failed: {exc}[/red]")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print("[green]✓[/green] YAML parses correctly")
        console.print(f"[red]✗ Pydantic validation failed: {exc}[/red]")
        raise typer.Exit(1)

    factories = build_checker_factories()
    errors: list[str] = []
    warnings: list[str] = []

    for key, entry in config.services.items():
        if entry.type not in factories:
            errors.append(f"Service '{key}': unknown type '{entry.type}'")
            continue
        if not entry.url:
            warnings.append(f"Service '{key}': no URL, it will show as pending")
            continue
        parsed = urlparse(entry.url)
        if not parsed.scheme or not parsed.netloc:
            errors.append(f"Service '{key}': invalid URL '{entry.url}'")
            continue
        if factories[entry.type].requires_api_key and not entry.api_key:
            warnings.append(f"Service '{key}': {entry.type} needs an api_key, it will show as pending")
        console.print(f"[green]✓[/green] Service '{key}' ({entry.type}) is valid")

    if errors:
        for err in errors:
            console.print(f"[red]✗ {err}[/red]")
        console.print(f"\n[red bold]{len(errors)} validation error(s) found.[/red bold]")
        raise typer.Exit(1)

    for w in warnings:
        console.print(f"[yellow]! {w}[/yellow]")
    console.print(f"[green]✓[/green] Cache backend: {config.cache.type}")
    console.print("\n[green bold]Configuration is valid.[/green bold]")


@config_app.command("show")
def config_show(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .pulseboard.yaml"),
) -> None:
    """Print resolved configuration."""
    config = _load(path)

    console.print(f"[bold]Pulseboard[/bold] {config.pulseboard.name} v{config.pulseboard.version}\n")

    console.print("[bold]Cache:[/bold]")
    console.print(f"  Type: {config.cache.type}")
    if config.cache.type == "redis":
        redis = config.cache.redis
        console.print(f"  Redis: {redis.host}:{redis.port}/{redis.db}")
    console.print(f"  Aux grace: {config.checks.aux_grace}s\n")

    console.print("[bold]Services:[/bold]")
    for key, entry in config.services.items():
        key_note = " (api key set)" if entry.api_key else ""
        console.print(f"  {key}: {entry.name or key} [{entry.type}] @ {entry.url or '—'}{key_note}")


def main() -> None:
    app()
