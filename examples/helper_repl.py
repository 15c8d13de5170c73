#!/usr/bin/env python3
"""Slideshow Bridge: interactive helper session.

Starts the helper for an application and forwards every JSON line typed on
stdin to it, printing each reply.  Useful when writing or debugging a helper.

Prerequisites:
  - The helper for APPLICATION is installed for this platform
    (``slideshow-bridge helpers resolve APPLICATION``).

Usage:
  python examples/helper_repl.py keynote6
  python examples/helper_repl.py powerpoint --log-level debug
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys


async def session(application: str) -> int:
    from slideshow_bridge import Bridge, SlideshowBridgeError

    try:
        bridge = await Bridge.open(application)
    except SlideshowBridgeError as exc:
        print(f"cannot start helper: {exc}", file=sys.stderr)
        return 2

    print(f"helper for {application!r} running (pid {bridge.pid}); empty line quits")
    loop = asyncio.get_running_loop()
    async with bridge:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line.strip():
                break
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                print(f"invalid JSON: {exc}", file=sys.stderr)
                continue
            try:
                print(json.dumps(await bridge.request(payload), indent=2))
            except SlideshowBridgeError as exc:
                print(f"error: {exc}", file=sys.stderr)
                if bridge.closed:
                    return 1
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Slideshow Bridge helper REPL")
    parser.add_argument("application", help="Application id, e.g. keynote6")
    parser.add_argument("--log-level", default="warning", help="Log level (default: warning)")
    args = parser.parse_args()

    from slideshow_bridge.logging import configure_logging

    configure_logging(level=args.log_level)
    sys.exit(asyncio.run(session(args.application)))


if __name__ == "__main__":
    main()
