"""Transport layer: line-oriented duplex channel to a helper process.

Security notes:
  - Helpers are started without arguments.  In DIRECT mode the path is passed
    to ``create_subprocess_exec`` as a single argv entry; SHELL mode (Windows
    ``.bat`` helpers) quotes the path before handing it to the shell.
  - stderr is inherited so helper diagnostics reach the parent's stderr
    unparsed.

Framing: outbound lines end with ``\\r\\n``; inbound bytes are split on
``\\r?\\n``, decoded as UTF-8 and empty lines are dropped.
"""

from __future__ import annotations

import asyncio
import os
import shlex
import subprocess
import sys
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from slideshow_bridge.exceptions import ChannelClosedError
from slideshow_bridge.helpers.platform import ExecMode
from slideshow_bridge.logging import bind_bridge_context, get_logger
from slideshow_bridge.transport.protocol import LINE_TERMINATOR

if TYPE_CHECKING:
    from slideshow_bridge.helpers.installer import ResolvedPath

log = get_logger(__name__)

DEFAULT_LINE_LIMIT = 16 * 1024 * 1024


def _shell_command(path: str) -> str:
    if os.name == "nt":
        return subprocess.list2cmdline([path])
    return shlex.quote(path)


def _split_line(raw: bytes) -> str:
    line = raw.decode("utf-8", errors="replace")
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


class ProcessChannel:
    """Owns one helper process and exposes it as a stream of text lines.

    Args:
        resolved:   Where the helper lives and how to start it.
        on_line:    Called with every non-empty inbound line, in order.
        on_closed:  Called once with the exit code when stdout reaches EOF
                    and the process has exited.
        env:        Variables set on top of the inherited environment.
        line_limit: Maximum size of one inbound line in bytes.
        label:      Bound into log records (usually the application id).
    """

    def __init__(
        self,
        resolved: "ResolvedPath",
        *,
        on_line: Callable[[str], None],
        on_closed: Callable[[int | None], None],
        env: Mapping[str, str] | None = None,
        line_limit: int = DEFAULT_LINE_LIMIT,
        label: str | None = None,
    ) -> None:
        self._resolved = resolved
        self._on_line = on_line
        self._on_closed = on_closed
        self._env = dict(env or {})
        self._line_limit = line_limit
        self._label = label
        self._log = log.bind(application=label)
        self._process: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._input_closed = False
        self._exited = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def started(self) -> bool:
        return self._process is not None

    @property
    def closed(self) -> bool:
        """True once the process has exited and all output was delivered."""
        return self._exited

    @property
    def writable(self) -> bool:
        return self._process is not None and not self._input_closed and not self._exited

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process is not None else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Spawn the helper and start delivering its output.

        Raises:
            RuntimeError: The channel was already started.
            OSError: The helper could not be executed.
        """
        if self._process is not None:
            raise RuntimeError("Channel already started.")

        env = os.environ.copy()
        env.update(self._env)
        path = str(self._resolved.path)
        kwargs: dict[str, object] = {
            "stdin": asyncio.subprocess.PIPE,
            "stdout": asyncio.subprocess.PIPE,
            "stderr": None,
            "env": env,
            "limit": self._line_limit,
        }

        if self._resolved.mode is ExecMode.SHELL:
            if sys.platform == "win32":
                kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
            self._process = await asyncio.create_subprocess_shell(_shell_command(path), **kwargs)
        else:
            self._process = await asyncio.create_subprocess_exec(path, **kwargs)

        self._log = self._log.bind(helper_pid=self._process.pid)
        self._log.info("helper_spawned", executable=path, mode=self._resolved.mode.value)
        self._reader_task = asyncio.create_task(
            self._read_lines(), name=f"helper-reader-{self._process.pid}"
        )

    def write_line(self, text: str) -> None:
        """Queue *text* plus the line terminator for the helper's stdin.

        Raises:
            ChannelClosedError: The input side is closed or the helper exited.
        """
        if not self.writable:
            raise ChannelClosedError("helper channel is not writable", self.returncode)
        assert self._process is not None and self._process.stdin is not None
        self._process.stdin.write((text + LINE_TERMINATOR).encode("utf-8"))

    async def close(self) -> None:
        """Close the helper's stdin.  Output already produced is still delivered."""
        already_closed = self._input_closed
        self._input_closed = True
        if already_closed or self._process is None:
            return
        stdin = self._process.stdin
        assert stdin is not None
        stdin.close()
        try:
            await stdin.wait_closed()
        except ConnectionError as exc:
            self._log.debug("helper_stdin_close_failed", error=str(exc))

    async def wait_closed(self, timeout: float | None = None) -> int | None:
        """Wait until the helper exited and its output was drained.

        When *timeout* expires the helper is killed.  Returns the exit code.
        """
        if self._reader_task is None:
            return None
        try:
            await asyncio.wait_for(asyncio.shield(self._reader_task), timeout)
        except asyncio.TimeoutError:
            self._log.warning("helper_shutdown_timeout", timeout=timeout)
            self.kill()
            await self._reader_task
        return self.returncode

    def kill(self) -> None:
        if self._process is None or self._process.returncode is not None:
            return
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def _read_lines(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        bind_bridge_context(application=self._label, helper_pid=self._process.pid)
        stdout = self._process.stdout
        discarding = False
        try:
            while True:
                try:
                    raw = await stdout.readline()
                except ValueError:
                    # The stream cannot be resynchronised past an oversized line.
                    if not discarding:
                        self._log.error("helper_line_too_long", limit=self._line_limit)
                        discarding = True
                        self.kill()
                    continue
                if not raw:
                    break
                if discarding:
                    continue
                line = _split_line(raw)
                if line:
                    self._on_line(line)
        finally:
            returncode = await self._process.wait()
            self._exited = True
            self._log.info("helper_exited", returncode=returncode)
            self._on_closed(returncode)
