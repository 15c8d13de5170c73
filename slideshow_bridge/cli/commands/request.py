"""CLI: send requests to a helper."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer
from rich.console import Console

from slideshow_bridge.bridge import Bridge
from slideshow_bridge.config import get_settings
from slideshow_bridge.exceptions import ConfigurationError, SlideshowBridgeError

console = Console()


async def _exchange(application: str, payloads: list[Any]) -> list[tuple[bool, Any]]:
    results: list[tuple[bool, Any]] = []
    async with await Bridge.open(application, settings=get_settings()) as bridge:
        for payload in payloads:
            try:
                results.append((True, await bridge.request(payload)))
            except SlideshowBridgeError as exc:
                results.append((False, exc.message))
    return results


def send(
    application: str = typer.Argument(help="Application id, e.g. keynote6."),
    payloads: list[str] = typer.Argument(help="JSON request payloads, sent in order."),
) -> None:
    """Start the helper for APPLICATION and send each PAYLOAD to it."""
    try:
        decoded = [json.loads(p) for p in payloads]
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON payload: {exc}[/red]")
        raise typer.Exit(2)

    try:
        results = asyncio.run(_exchange(application, decoded))
    except ConfigurationError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(2)

    failed = False
    for ok, value in results:
        if ok:
            console.print_json(data=value)
        else:
            failed = True
            console.print(f"[red]error: {value}[/red]")
    if failed:
        raise typer.Exit(1)
