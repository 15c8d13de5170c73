"""Helpers layer: installing helper executables at a runnable location.

The bridge only needs one thing from this layer: an absolute path to an
executable helper that stays valid for the rest of the process.  How that
path comes to exist is the installer's business.

:class:`BundledInstaller` has two modes:

- **in place** (development checkout, pip install): helpers are executed
  straight from the bundle directory.
- **packaged** (frozen application): the bundle may be read-only or lack
  permission bits, so on first use every helper asset is copied into a
  writable directory and ``.sh`` scripts are made executable.  Files already
  present in the target are left untouched.
"""

from __future__ import annotations

import os
import shutil
import stat
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from slideshow_bridge.exceptions import InstallationFailedError
from slideshow_bridge.helpers.platform import ExecMode, HostPlatform
from slideshow_bridge.logging import get_logger

if TYPE_CHECKING:
    from slideshow_bridge.config import Settings

log = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedPath:
    path: Path
    mode: ExecMode


class Installer(ABC):
    """Makes helper executables available at a stable, executable path."""

    @abstractmethod
    def materialize(self, executable_name: str) -> ResolvedPath:
        """Return the runnable location of *executable_name*.

        Raises:
            InstallationFailedError: The helper cannot be made runnable.
        """


def is_frozen() -> bool:
    return bool(getattr(sys, "frozen", False))


class BundledInstaller(Installer):
    def __init__(
        self,
        bundle_dir: Path,
        target_dir: Path,
        *,
        packaged: bool | None = None,
        platform: HostPlatform | None = None,
        asset_suffixes: tuple[str, ...] = (".scpt", ".sh", ".bat", ".js"),
        executable_suffixes: tuple[str, ...] = (".sh",),
    ) -> None:
        self._bundle_dir = Path(bundle_dir)
        self._target_dir = Path(target_dir)
        self._packaged = is_frozen() if packaged is None else packaged
        self._platform = platform or HostPlatform.detect()
        self._asset_suffixes = tuple(asset_suffixes)
        self._executable_suffixes = tuple(executable_suffixes)
        self._assets_copied = False
        self._resolved: dict[str, ResolvedPath] = {}

    @classmethod
    def from_settings(cls, settings: "Settings", platform: HostPlatform | None = None) -> "BundledInstaller":
        cfg = settings.install
        return cls(
            cfg.bundle_dir,
            cfg.target_dir,
            packaged=cfg.packaged,
            platform=platform,
            asset_suffixes=tuple(cfg.asset_suffixes),
            executable_suffixes=tuple(cfg.executable_suffixes),
        )

    @property
    def packaged(self) -> bool:
        return self._packaged

    @property
    def helper_dir(self) -> Path:
        """Directory helpers are executed from."""
        return self._target_dir if self._packaged else self._bundle_dir

    def materialize(self, executable_name: str) -> ResolvedPath:
        if executable_name in self._resolved:
            return self._resolved[executable_name]

        try:
            if self._packaged and not self._assets_copied:
                self._copy_assets()
                self._assets_copied = True
            path = (self.helper_dir / executable_name).resolve()
            if not path.is_file():
                raise InstallationFailedError(executable_name, f"'{path}' does not exist")
            if not self._platform.is_windows:
                _ensure_executable(path)
        except InstallationFailedError:
            raise
        except OSError as exc:
            raise InstallationFailedError(executable_name, str(exc)) from exc

        resolved = ResolvedPath(path=path, mode=self._platform.exec_mode)
        self._resolved[executable_name] = resolved
        log.debug("helper_materialized", executable=executable_name, path=str(path))
        return resolved

    def _copy_assets(self) -> None:
        self._target_dir.mkdir(parents=True, exist_ok=True)
        copied: list[str] = []
        for source in sorted(self._bundle_dir.iterdir()):
            if not source.is_file() or source.suffix not in self._asset_suffixes:
                continue
            target = self._target_dir / source.name
            if target.exists():
                continue
            shutil.copyfile(source, target)
            if not self._platform.is_windows and source.suffix in self._executable_suffixes:
                target.chmod(0o755)
            copied.append(source.name)
        log.info(
            "helper_assets_installed",
            source=str(self._bundle_dir),
            target=str(self._target_dir),
            copied=copied,
        )


def _ensure_executable(path: Path) -> None:
    if os.access(path, os.X_OK):
        return
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    if not os.access(path, os.X_OK):
        raise InstallationFailedError(path.name, f"'{path}' is not executable")
