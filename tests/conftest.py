"""Shared pytest fixtures for the slideshow-bridge test suite."""

from __future__ import annotations

import shlex
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from slideshow_bridge.bridge import Bridge
from slideshow_bridge.config import Settings, override_settings
from slideshow_bridge.helpers.installer import BundledInstaller
from slideshow_bridge.helpers.platform import ExecMode, HostPlatform
from slideshow_bridge.helpers.registry import HelperDescriptor, HelperRegistry

FAKE_HELPER = Path(__file__).parent / "fixtures" / "fake_helper.py"
FAKE_PLATFORM = "testos"
FAKE_APPLICATION = "fake"
FAKE_EXECUTABLE = "connector-test-fake.sh"

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="helper wrapper is a POSIX shell script")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    settings = Settings(
        install={"bundle_dir": str(tmp_path / "bundle"), "target_dir": str(tmp_path / "installed")},
        channel={"shutdown_timeout": 5.0},
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    return settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_platform() -> HostPlatform:
    return HostPlatform(platform_id=FAKE_PLATFORM, exec_mode=ExecMode.DIRECT)


@pytest.fixture
def helper_bundle(tmp_path: Path) -> Path:
    """A bundle directory holding a shell wrapper around ``fake_helper.py``."""
    bundle = tmp_path / "bundle"
    bundle.mkdir(exist_ok=True)
    wrapper = bundle / FAKE_EXECUTABLE
    wrapper.write_text(
        "#!/bin/sh\n"
        f"exec {shlex.quote(sys.executable)} {shlex.quote(str(FAKE_HELPER))}\n",
        encoding="utf-8",
    )
    wrapper.chmod(0o755)
    return bundle


@pytest.fixture
def fake_registry() -> HelperRegistry:
    return HelperRegistry([HelperDescriptor(FAKE_PLATFORM, FAKE_APPLICATION, FAKE_EXECUTABLE)])


@pytest.fixture
def fake_installer(helper_bundle: Path, tmp_path: Path, fake_platform: HostPlatform) -> BundledInstaller:
    return BundledInstaller(helper_bundle, tmp_path / "installed", packaged=False, platform=fake_platform)


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------


@pytest.fixture
def bridge_kwargs(
    test_settings: Settings,
    fake_registry: HelperRegistry,
    fake_installer: BundledInstaller,
    fake_platform: HostPlatform,
) -> dict[str, Any]:
    return {
        "settings": test_settings,
        "registry": fake_registry,
        "installer": fake_installer,
        "platform": fake_platform,
    }


@pytest_asyncio.fixture
async def open_bridge(
    bridge_kwargs: dict[str, Any],
) -> AsyncGenerator[Callable[[], Awaitable[Bridge]], None]:
    """Factory fixture; every bridge it opens is shut down after the test."""
    opened: list[Bridge] = []

    async def _open() -> Bridge:
        bridge = await Bridge.open(FAKE_APPLICATION, **bridge_kwargs)
        opened.append(bridge)
        return bridge

    yield _open

    for bridge in opened:
        await bridge.end()
        await bridge.wait_closed(timeout=5.0)


@pytest.fixture(autouse=True)
def _reset_platform_cache() -> None:
    HostPlatform.reset_cache()
