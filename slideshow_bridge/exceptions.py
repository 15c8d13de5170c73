"""Slideshow Bridge: exception hierarchy.

All exceptions raised by the bridge inherit from SlideshowBridgeError so that
callers can catch the full family with a single except clause when needed.

Hierarchy:
    SlideshowBridgeError
    ├── ConfigurationError
    │   ├── UnsupportedCombinationError
    │   └── InstallationFailedError
    ├── ChannelError
    │   ├── ChannelClosedError
    │   └── PayloadSerializationError
    └── ResponseError
        ├── MalformedResponseError
        ├── InvalidResponseShapeError
        └── HelperReportedError

Configuration errors are raised while a bridge is being constructed and are
never retried.  Response errors settle a single request; the bridge that
raised them remains usable.
"""

from __future__ import annotations

from typing import Any


class SlideshowBridgeError(Exception):
    """Base exception for all Slideshow Bridge errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Construction time
# ---------------------------------------------------------------------------


class ConfigurationError(SlideshowBridgeError):
    """Base for errors that prevent a bridge from being created."""


class UnsupportedCombinationError(ConfigurationError):
    """No helper is registered for this platform/application pair."""

    def __init__(self, platform_id: str, application_id: str) -> None:
        key = f"{platform_id}-{application_id}"
        super().__init__(
            f"unsupported platform/application combination: {key}",
            context={"key": key, "platform_id": platform_id, "application_id": application_id},
        )
        self.key = key
        self.platform_id = platform_id
        self.application_id = application_id


class InstallationFailedError(ConfigurationError):
    """The helper executable could not be made available at a runnable path."""

    def __init__(self, executable_name: str, reason: str) -> None:
        super().__init__(
            f"Helper '{executable_name}' could not be installed: {reason}",
            context={"executable_name": executable_name, "reason": reason},
        )
        self.executable_name = executable_name
        self.reason = reason


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class ChannelError(SlideshowBridgeError):
    """Base for errors of the process channel."""


class ChannelClosedError(ChannelError):
    """The helper channel is closed; no reply can arrive any more."""

    def __init__(self, reason: str = "helper channel closed", returncode: int | None = None) -> None:
        message = reason if returncode is None else f"{reason} (exit code {returncode})"
        super().__init__(message, context={"returncode": returncode})
        self.returncode = returncode


class PayloadSerializationError(ChannelError):
    """The request payload cannot be encoded as a JSON line."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(
            f"Request payload is not JSON serializable: {cause}",
            context={"cause": str(cause)},
        )
        self.cause = cause


# ---------------------------------------------------------------------------
# Per-request replies
# ---------------------------------------------------------------------------


class ResponseError(SlideshowBridgeError):
    """Base for failures carried by a single reply line."""


class MalformedResponseError(ResponseError):
    """The reply line is not valid JSON."""

    def __init__(self, raw_line: str, diagnostic: str) -> None:
        super().__init__(
            f"Invalid response type from connector: {diagnostic}",
            context={"raw_line": raw_line, "diagnostic": diagnostic},
        )
        self.raw_line = raw_line
        self.diagnostic = diagnostic


class InvalidResponseShapeError(ResponseError):
    """The reply is JSON but carries neither ``response`` nor ``error``."""

    def __init__(self, raw_line: str) -> None:
        super().__init__(
            "Invalid response structure from connector",
            context={"raw_line": raw_line},
        )
        self.raw_line = raw_line


class HelperReportedError(ResponseError):
    """The helper answered with ``{"error": "..."}``."""

    def __init__(self, error: str) -> None:
        super().__init__(error, context={"error": error})
        self.error = error
