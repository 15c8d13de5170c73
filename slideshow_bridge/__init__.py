"""Slideshow Bridge: observe and control slideshow applications.

Each supported presentation application is driven by a small helper script
(AppleScript wrappers on macOS, a Windows batch/JScript pair for PowerPoint).
The bridge starts the right helper for the host platform and talks to it with
one JSON object per line over stdin/stdout.

Layers (bottom to top):
    1. Helpers   - registry of helper scripts, host platform, installation
    2. Transport - process channel, wire format, FIFO reply correlation
    3. Bridge    - asyncio request/response API
    4. CLI       - typer commands for inspecting helpers and sending requests
"""

__version__ = "0.1.0"
__license__ = "MPL-2.0"

from slideshow_bridge.bridge import Bridge
from slideshow_bridge.exceptions import (
    ChannelClosedError,
    HelperReportedError,
    InstallationFailedError,
    InvalidResponseShapeError,
    MalformedResponseError,
    SlideshowBridgeError,
    UnsupportedCombinationError,
)

__all__ = [
    "__version__",
    "Bridge",
    "ChannelClosedError",
    "HelperReportedError",
    "InstallationFailedError",
    "InvalidResponseShapeError",
    "MalformedResponseError",
    "SlideshowBridgeError",
    "UnsupportedCombinationError",
]
