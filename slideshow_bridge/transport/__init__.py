"""Transport layer: process channel, wire format and reply correlation."""

from slideshow_bridge.transport.channel import ProcessChannel
from slideshow_bridge.transport.correlator import Correlator, FifoCorrelator
from slideshow_bridge.transport.protocol import HelperReply, decode_reply, encode_request

__all__ = [
    "Correlator",
    "FifoCorrelator",
    "HelperReply",
    "ProcessChannel",
    "decode_reply",
    "encode_request",
]
