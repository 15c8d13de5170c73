"""Helpers layer: which helper to run and where it lives."""

from slideshow_bridge.helpers.installer import BundledInstaller, Installer, ResolvedPath
from slideshow_bridge.helpers.platform import ExecMode, HostPlatform
from slideshow_bridge.helpers.registry import DEFAULT_HELPERS, HelperDescriptor, HelperRegistry

__all__ = [
    "BundledInstaller",
    "DEFAULT_HELPERS",
    "ExecMode",
    "HelperDescriptor",
    "HelperRegistry",
    "HostPlatform",
    "Installer",
    "ResolvedPath",
]
