"""Unit tests: exception hierarchy."""

from __future__ import annotations

import pytest

from slideshow_bridge.exceptions import (
    ChannelClosedError,
    ChannelError,
    ConfigurationError,
    HelperReportedError,
    InstallationFailedError,
    InvalidResponseShapeError,
    MalformedResponseError,
    PayloadSerializationError,
    ResponseError,
    SlideshowBridgeError,
    UnsupportedCombinationError,
)


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        ("exc", "base"),
        [
            (UnsupportedCombinationError("darwin", "impress"), ConfigurationError),
            (InstallationFailedError("x.sh", "missing"), ConfigurationError),
            (ChannelClosedError(), ChannelError),
            (PayloadSerializationError(TypeError("nope")), ChannelError),
            (MalformedResponseError("x", "bad"), ResponseError),
            (InvalidResponseShapeError("{}"), ResponseError),
            (HelperReportedError("boom"), ResponseError),
        ],
    )
    def test_family(self, exc: SlideshowBridgeError, base: type) -> None:
        assert isinstance(exc, base)
        assert isinstance(exc, SlideshowBridgeError)

    def test_unsupported_combination_context(self) -> None:
        exc = UnsupportedCombinationError("linux", "keynote")
        assert exc.context["key"] == "linux-keynote"
        assert exc.message == "unsupported platform/application combination: linux-keynote"

    def test_channel_closed_message_includes_exit_code(self) -> None:
        assert str(ChannelClosedError("helper exited unexpectedly", 3)) == (
            "helper exited unexpectedly (exit code 3)"
        )
        assert ChannelClosedError().returncode is None

    def test_repr(self) -> None:
        assert repr(HelperReportedError("boom")) == "HelperReportedError('boom', context={'error': 'boom'})"
