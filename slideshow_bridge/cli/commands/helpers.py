"""CLI: helper registry inspection commands."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from slideshow_bridge.config import get_settings
from slideshow_bridge.exceptions import ConfigurationError
from slideshow_bridge.helpers.installer import BundledInstaller
from slideshow_bridge.helpers.platform import HostPlatform
from slideshow_bridge.helpers.registry import HelperRegistry

app = typer.Typer(help="Inspect the registered helper executables.")
console = Console()


def _platform(platform_id: str | None) -> HostPlatform:
    return HostPlatform.for_id(platform_id) if platform_id else HostPlatform.detect()


@app.command("list")
def list_helpers(
    platform_id: str | None = typer.Option(
        None, "--platform", "-p", help="Only show helpers for this platform id."
    ),
) -> None:
    """List registered platform/application helpers."""
    registry = HelperRegistry.from_settings(get_settings())
    host = HostPlatform.detect().platform_id

    table = Table(title="Registered Helpers")
    table.add_column("Platform", style="cyan")
    table.add_column("Application", style="cyan")
    table.add_column("Executable")
    table.add_column("Host", style="green")

    rows = sorted(registry, key=lambda d: (d.platform_id, d.application_id))
    for descriptor in rows:
        if platform_id and descriptor.platform_id != platform_id:
            continue
        table.add_row(
            descriptor.platform_id,
            descriptor.application_id,
            descriptor.executable_name,
            "yes" if descriptor.platform_id == host else "",
        )
    console.print(table)


@app.command("resolve")
def resolve_helper(
    application: str = typer.Argument(help="Application id, e.g. keynote6."),
    platform_id: str | None = typer.Option(
        None, "--platform", "-p", help="Resolve for this platform id instead of the host."
    ),
) -> None:
    """Show which helper serves APPLICATION and where it is installed."""
    settings = get_settings()
    platform = _platform(platform_id)
    registry = HelperRegistry.from_settings(settings)

    try:
        descriptor = registry.resolve(platform.platform_id, application)
        resolved = BundledInstaller.from_settings(settings, platform=platform).materialize(
            descriptor.executable_name
        )
    except ConfigurationError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(2)

    console.print(f"[bold]{descriptor.key}[/bold] -> {descriptor.executable_name}")
    console.print(f"path: {resolved.path}")
    console.print(f"mode: {resolved.mode.value}")
