"""Unit tests: helpers/installer.py (BundledInstaller)."""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from slideshow_bridge.config import Settings
from slideshow_bridge.exceptions import InstallationFailedError
from slideshow_bridge.helpers.installer import BundledInstaller
from slideshow_bridge.helpers.platform import ExecMode, HostPlatform

POSIX = HostPlatform(platform_id="darwin", exec_mode=ExecMode.DIRECT)
WINDOWS = HostPlatform(platform_id="win32", exec_mode=ExecMode.SHELL)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")


@pytest.fixture
def bundle(tmp_path: Path) -> Path:
    d = tmp_path / "bundle"
    d.mkdir()
    for name in ("connector-osx-kn6.sh", "connector-osx-kn6.scpt", "connector-win-ppt2010.bat",
                 "connector-win-ppt2010.js", "README.md"):
        (d / name).write_text(f"# {name}\n")
    (d / "connector-osx-kn6.sh").chmod(0o644)
    return d


@pytest.mark.unit
class TestInPlaceMode:
    @posix_only
    def test_resolves_inside_bundle(self, bundle: Path, tmp_path: Path) -> None:
        installer = BundledInstaller(bundle, tmp_path / "target", packaged=False, platform=POSIX)
        resolved = installer.materialize("connector-osx-kn6.sh")
        assert resolved.path == (bundle / "connector-osx-kn6.sh").resolve()
        assert resolved.mode is ExecMode.DIRECT
        assert not (tmp_path / "target").exists()

    @posix_only
    def test_adds_execute_bit_when_missing(self, bundle: Path, tmp_path: Path) -> None:
        installer = BundledInstaller(bundle, tmp_path / "target", packaged=False, platform=POSIX)
        resolved = installer.materialize("connector-osx-kn6.sh")
        assert os.access(resolved.path, os.X_OK)

    def test_missing_helper_raises(self, bundle: Path, tmp_path: Path) -> None:
        installer = BundledInstaller(bundle, tmp_path / "target", packaged=False, platform=POSIX)
        with pytest.raises(InstallationFailedError) as exc_info:
            installer.materialize("connector-missing.sh")
        assert exc_info.value.executable_name == "connector-missing.sh"

    def test_windows_mode_is_shell(self, bundle: Path, tmp_path: Path) -> None:
        installer = BundledInstaller(bundle, tmp_path / "target", packaged=False, platform=WINDOWS)
        resolved = installer.materialize("connector-win-ppt2010.bat")
        assert resolved.mode is ExecMode.SHELL

    @posix_only
    def test_result_is_cached(self, bundle: Path, tmp_path: Path) -> None:
        installer = BundledInstaller(bundle, tmp_path / "target", packaged=False, platform=POSIX)
        first = installer.materialize("connector-osx-kn6.sh")
        (bundle / "connector-osx-kn6.sh").unlink()
        assert installer.materialize("connector-osx-kn6.sh") is first


@pytest.mark.unit
class TestPackagedMode:
    @posix_only
    def test_copies_assets_by_suffix(self, bundle: Path, tmp_path: Path) -> None:
        target = tmp_path / "target"
        installer = BundledInstaller(bundle, target, packaged=True, platform=POSIX)
        resolved = installer.materialize("connector-osx-kn6.sh")

        assert resolved.path == (target / "connector-osx-kn6.sh").resolve()
        copied = sorted(p.name for p in target.iterdir())
        assert copied == [
            "connector-osx-kn6.scpt",
            "connector-osx-kn6.sh",
            "connector-win-ppt2010.bat",
            "connector-win-ppt2010.js",
        ]

    @posix_only
    def test_shell_scripts_get_0755(self, bundle: Path, tmp_path: Path) -> None:
        target = tmp_path / "target"
        BundledInstaller(bundle, target, packaged=True, platform=POSIX).materialize("connector-osx-kn6.sh")
        assert stat.S_IMODE((target / "connector-osx-kn6.sh").stat().st_mode) == 0o755

    def test_existing_targets_are_not_overwritten(self, bundle: Path, tmp_path: Path) -> None:
        target = tmp_path / "target"
        target.mkdir()
        (target / "connector-win-ppt2010.bat").write_text("local edit\n")

        installer = BundledInstaller(bundle, target, packaged=True, platform=WINDOWS)
        installer.materialize("connector-win-ppt2010.bat")

        assert (target / "connector-win-ppt2010.bat").read_text() == "local edit\n"
        assert (target / "connector-win-ppt2010.js").exists()

    def test_missing_bundle_raises_installation_failed(self, tmp_path: Path) -> None:
        installer = BundledInstaller(tmp_path / "nowhere", tmp_path / "target", packaged=True, platform=WINDOWS)
        with pytest.raises(InstallationFailedError) as exc_info:
            installer.materialize("connector-win-ppt2010.bat")
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_packaged_detected_from_sys_frozen(self, bundle: Path, tmp_path: Path) -> None:
        with patch.object(sys, "frozen", True, create=True):
            installer = BundledInstaller(bundle, tmp_path / "target", platform=WINDOWS)
        assert installer.packaged
        assert installer.helper_dir == tmp_path / "target"

    def test_not_packaged_by_default(self, bundle: Path, tmp_path: Path) -> None:
        installer = BundledInstaller(bundle, tmp_path / "target", platform=WINDOWS)
        assert not installer.packaged
        assert installer.helper_dir == bundle


@pytest.mark.unit
class TestFromSettings:
    def test_uses_install_section(self, bundle: Path, tmp_path: Path) -> None:
        settings = Settings(
            install={
                "bundle_dir": str(bundle),
                "target_dir": str(tmp_path / "target"),
                "packaged": True,
                "asset_suffixes": [".bat"],
            }
        )
        installer = BundledInstaller.from_settings(settings, platform=WINDOWS)
        installer.materialize("connector-win-ppt2010.bat")
        assert [p.name for p in (tmp_path / "target").iterdir()] == ["connector-win-ppt2010.bat"]
