"""Helpers layer: host platform detection.

The platform id uses the ``sys.platform`` vocabulary (``darwin``, ``win32``,
``linux``) because the built-in helper table is keyed on it.  The exec mode
tells the process channel whether the helper is started directly or through
the command shell, which Windows needs for ``.bat`` helpers.

Detection happens once per process and is cached on the class.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

WINDOWS_FAMILY = frozenset({"win32", "cygwin"})


class ExecMode(str, Enum):
    DIRECT = "direct"
    SHELL = "shell"


def exec_mode_for(platform_id: str) -> ExecMode:
    """Return the exec mode used for helpers on *platform_id*."""
    return ExecMode.SHELL if platform_id in WINDOWS_FAMILY else ExecMode.DIRECT


def normalize_platform_id(raw: str) -> str:
    # Python 2 era interpreters reported "linux2"/"linux3".
    if raw.startswith("linux"):
        return "linux"
    return raw


@dataclass(frozen=True)
class HostPlatform:
    """Immutable snapshot of the host platform.

    Use :meth:`detect` to create an instance for the running interpreter, or
    instantiate directly to describe another platform (tests, CLI ``--platform``).
    """

    platform_id: str
    exec_mode: ExecMode

    _cache: ClassVar[HostPlatform | None] = None

    @classmethod
    def for_id(cls, platform_id: str) -> "HostPlatform":
        platform_id = normalize_platform_id(platform_id)
        return cls(platform_id=platform_id, exec_mode=exec_mode_for(platform_id))

    @classmethod
    def detect(cls) -> "HostPlatform":
        """Detect and cache the current platform."""
        if cls._cache is not None:
            return cls._cache
        info = cls.for_id(sys.platform)
        cls._cache = info
        return info

    @classmethod
    def reset_cache(cls) -> None:
        """Clear the cached platform info.  Useful in tests."""
        cls._cache = None

    @property
    def is_windows(self) -> bool:
        return self.platform_id in WINDOWS_FAMILY
