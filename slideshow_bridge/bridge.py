"""Bridge: asynchronous request/response API over one helper process.

Usage::

    async with await Bridge.open("keynote6") as bridge:
        state = await bridge.request({"command": "STATE"})

Construction resolves the helper for the host platform and makes it runnable
before anything is spawned, so an unsupported application or a broken
installation fails immediately and never yields a half-working bridge.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any

from slideshow_bridge.config import Settings, get_settings
from slideshow_bridge.exceptions import ChannelClosedError, InstallationFailedError
from slideshow_bridge.helpers.installer import BundledInstaller, Installer, ResolvedPath
from slideshow_bridge.helpers.platform import HostPlatform
from slideshow_bridge.helpers.registry import HelperDescriptor, HelperRegistry
from slideshow_bridge.logging import get_logger
from slideshow_bridge.transport.channel import ProcessChannel
from slideshow_bridge.transport.correlator import Correlator, FifoCorrelator
from slideshow_bridge.transport.protocol import encode_request

log = get_logger(__name__)


class Bridge:
    """One helper process plus the queue of requests waiting on it.

    Args:
        application: Application id, e.g. ``"keynote6"`` or ``"powerpoint"``.
        settings:    Defaults to :func:`~slideshow_bridge.config.get_settings`.
        registry:    Helper table.  Defaults to one built from *settings*.
        installer:   Defaults to a :class:`BundledInstaller` built from *settings*.
        platform:    Host platform.  Defaults to the detected one.

    Raises:
        UnsupportedCombinationError: No helper for this platform/application.
        InstallationFailedError: The helper cannot be made runnable.
    """

    def __init__(
        self,
        application: str,
        *,
        settings: Settings | None = None,
        registry: HelperRegistry | None = None,
        installer: Installer | None = None,
        platform: HostPlatform | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._platform = platform or HostPlatform.detect()
        registry = registry or HelperRegistry.from_settings(self._settings)
        installer = installer or BundledInstaller.from_settings(self._settings, platform=self._platform)

        self._application = application
        self._log = log.bind(application=application)
        self._descriptor = registry.resolve(self._platform.platform_id, application)
        self._resolved = installer.materialize(self._descriptor.executable_name)
        self._log.info(
            "helper_resolved",
            key=self._descriptor.key,
            executable=str(self._resolved.path),
            mode=self._resolved.mode.value,
        )

        self._correlator: Correlator = FifoCorrelator(on_unmatched=self._log_unmatched)
        self._channel = ProcessChannel(
            self._resolved,
            on_line=self._correlator.dispatch,
            on_closed=self._on_channel_closed,
            env=self._settings.channel.env,
            line_limit=self._settings.channel.line_limit,
            label=application,
        )
        self._ended = False

    @classmethod
    async def open(cls, application: str, **kwargs: Any) -> "Bridge":
        """Construct a bridge and spawn its helper."""
        bridge = cls(application, **kwargs)
        await bridge.start()
        return bridge

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def application(self) -> str:
        return self._application

    @property
    def descriptor(self) -> HelperDescriptor:
        return self._descriptor

    @property
    def resolved(self) -> ResolvedPath:
        return self._resolved

    @property
    def pending(self) -> int:
        return self._correlator.pending

    @property
    def closed(self) -> bool:
        return self._correlator.closed

    @property
    def pid(self) -> int | None:
        return self._channel.pid

    @property
    def returncode(self) -> int | None:
        return self._channel.returncode

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Spawn the helper.

        Raises:
            InstallationFailedError: The helper path exists but cannot be executed.
        """
        try:
            await self._channel.start()
        except OSError as exc:
            self._correlator.close("helper could not be started")
            raise InstallationFailedError(self._descriptor.executable_name, str(exc)) from exc
        self._log = self._log.bind(helper_pid=self.pid)

    async def request(self, payload: Any) -> Any:
        """Send *payload* and wait for the helper's reply.

        Returns the ``response`` value of the reply line.

        Raises:
            PayloadSerializationError: *payload* cannot be encoded; nothing was sent.
            ChannelClosedError: The bridge is not started, was ended, or the
                helper exited before replying.
            HelperReportedError: The helper answered ``{"error": ...}``.
            MalformedResponseError: The reply line is not JSON.
            InvalidResponseShapeError: The reply has neither field.
        """
        line = encode_request(payload)
        if self._ended or not self._channel.writable:
            raise ChannelClosedError("bridge is not accepting requests", self.returncode)

        # enqueue + write with no await in between keeps queue order == wire order
        future = self._correlator.enqueue()
        try:
            self._channel.write_line(line)
        except Exception:
            self._correlator.discard(future)
            raise
        return await future

    async def end(self) -> None:
        """Close the helper's stdin.  Requests in flight still settle."""
        if self._ended:
            return
        self._ended = True
        self._log.debug("bridge_ending", pending=self.pending)
        await self._channel.close()

    async def wait_closed(self, timeout: float | None = None) -> int | None:
        """Wait for the helper to exit; kill it if *timeout* expires."""
        return await self._channel.wait_closed(timeout)

    async def __aenter__(self) -> "Bridge":
        if not self._channel.started:
            await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.end()
        await self.wait_closed(self._settings.channel.shutdown_timeout)

    # ------------------------------------------------------------------
    # Channel callbacks
    # ------------------------------------------------------------------

    def _on_channel_closed(self, returncode: int | None) -> None:
        reason = "helper channel closed" if self._ended else "helper exited unexpectedly"
        if self.pending:
            self._log.warning(
                "bridge_requests_aborted",
                pending=self.pending,
                reason=reason,
                returncode=returncode,
            )
        self._correlator.close(reason, returncode)

    def _log_unmatched(self, line: str) -> None:
        self._log.warning("unmatched_helper_line", line=line[:200])
