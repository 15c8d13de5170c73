"""Slideshow Bridge CLI: entry point.

Usage:
    slideshow-bridge helpers list
    slideshow-bridge helpers resolve <application>
    slideshow-bridge request <application> '<json>' ['<json>' ...]
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from slideshow_bridge.cli.commands import helpers, request

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

app = typer.Typer(
    name="slideshow-bridge",
    help="Slideshow Bridge: drive presentation applications through helper processes.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

app.add_typer(helpers.app, name="helpers")
app.command("request")(request.send)


@app.callback()
def main_callback(
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to config.yaml.")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Override the configured log level.")
    ] = None,
) -> None:
    from slideshow_bridge.config import Settings, override_settings
    from slideshow_bridge.logging import configure_logging

    settings = Settings.load(config_file=config)
    if log_level:
        if log_level.lower() not in LOG_LEVELS:
            raise typer.BadParameter(f"must be one of {', '.join(LOG_LEVELS)}", param_hint="--log-level")
        settings.logging.level = log_level.lower()
    override_settings(settings)
    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
        log_file=str(settings.logging.file) if settings.logging.file else None,
    )


if __name__ == "__main__":
    app()
