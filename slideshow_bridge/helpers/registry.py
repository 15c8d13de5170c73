"""Helpers layer: helper registry and resolver.

The registry maps a ``<platform>-<application>`` key to the helper executable
that controls that application on that platform.  It is built once at startup
and handed to every bridge, so resolution never reads global state.

Usage::

    registry = HelperRegistry.from_settings(settings)
    descriptor = registry.resolve("darwin", "keynote6")
    descriptor.executable_name    # "connector-osx-kn6.sh"
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from slideshow_bridge.exceptions import UnsupportedCombinationError
from slideshow_bridge.logging import get_logger

if TYPE_CHECKING:
    from slideshow_bridge.config import Settings

log = get_logger(__name__)


def helper_key(platform_id: str, application_id: str) -> str:
    return f"{platform_id}-{application_id}"


@dataclass(frozen=True)
class HelperDescriptor:
    platform_id: str
    application_id: str
    executable_name: str

    @property
    def key(self) -> str:
        return helper_key(self.platform_id, self.application_id)


DEFAULT_HELPERS: tuple[HelperDescriptor, ...] = (
    HelperDescriptor("darwin", "keynote", "connector-osx-kn5.sh"),
    HelperDescriptor("darwin", "keynote5", "connector-osx-kn5.sh"),
    HelperDescriptor("darwin", "keynote6", "connector-osx-kn6.sh"),
    HelperDescriptor("darwin", "powerpoint", "connector-osx-ppt2011.sh"),
    HelperDescriptor("darwin", "powerpoint2011", "connector-osx-ppt2011.sh"),
    HelperDescriptor("darwin", "powerpoint2016", "connector-osx-ppt2011.sh"),
    HelperDescriptor("win32", "powerpoint", "connector-win-ppt2010.bat"),
    HelperDescriptor("win32", "powerpoint2010", "connector-win-ppt2010.bat"),
    HelperDescriptor("win32", "powerpoint2013", "connector-win-ppt2010.bat"),
)


class HelperRegistry:
    """Immutable lookup table of helper descriptors.

    Raises:
        ValueError: Two descriptors share the same platform/application key.
    """

    def __init__(self, descriptors: Iterable[HelperDescriptor]) -> None:
        table: dict[str, HelperDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.key in table:
                raise ValueError(f"Duplicate helper registration for '{descriptor.key}'.")
            table[descriptor.key] = descriptor
        self._table = MappingProxyType(table)

    @classmethod
    def default(cls) -> "HelperRegistry":
        return cls(DEFAULT_HELPERS)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "HelperRegistry":
        """Build the built-in table with ``settings.helpers.extra`` layered on top."""
        merged: dict[str, HelperDescriptor] = {d.key: d for d in DEFAULT_HELPERS}
        for entry in settings.helpers.extra:
            descriptor = HelperDescriptor(entry.platform, entry.application, entry.executable)
            if descriptor.key in merged:
                log.debug("helper_overridden", key=descriptor.key, executable=entry.executable)
            merged[descriptor.key] = descriptor
        return cls(merged.values())

    def resolve(self, platform_id: str, application_id: str) -> HelperDescriptor:
        """Return the descriptor for *platform_id* / *application_id*.

        Raises:
            ValueError: Either identifier is empty.
            UnsupportedCombinationError: No helper is registered for the pair.
        """
        if not platform_id or not application_id:
            raise ValueError("platform_id and application_id must be non-empty strings.")
        descriptor = self._table.get(helper_key(platform_id, application_id))
        if descriptor is None:
            raise UnsupportedCombinationError(platform_id, application_id)
        return descriptor

    def applications(self, platform_id: str) -> list[str]:
        """Return the application ids available on *platform_id*, sorted."""
        return sorted(d.application_id for d in self._table.values() if d.platform_id == platform_id)

    def __iter__(self) -> Iterator[HelperDescriptor]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: object) -> bool:
        return key in self._table
