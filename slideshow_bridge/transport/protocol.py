"""Transport layer: the line-JSON wire format spoken by helpers.

Outbound: one JSON value per line, terminated by ``\\r\\n``.
Inbound:  one JSON object per line, either ``{"response": <any>}`` or
``{"error": "<string>"}``.  There is no correlation identifier; replies
arrive in the order the requests were written.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict

from slideshow_bridge.exceptions import (
    HelperReportedError,
    InvalidResponseShapeError,
    MalformedResponseError,
    PayloadSerializationError,
    ResponseError,
)

LINE_TERMINATOR = "\r\n"


class HelperReply(BaseModel):
    """One decoded reply line.

    ``response`` and ``error`` default to None, so use :attr:`has_response`
    to tell an explicit ``{"response": null}`` from a missing field.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    response: Any = None
    error: Any = None

    @property
    def has_response(self) -> bool:
        return "response" in self.model_fields_set

    @property
    def is_error(self) -> bool:
        return isinstance(self.error, str)


def encode_request(payload: Any) -> str:
    """Serialize *payload* as a single line (without terminator).

    Raises:
        PayloadSerializationError: *payload* is not JSON serializable, or
            holds text that has no UTF-8 encoding (lone surrogates).
    """
    try:
        line = json.dumps(payload, ensure_ascii=False, allow_nan=False)
        line.encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PayloadSerializationError(exc) from exc
    return line


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name!r}")


def decode_reply(line: str) -> Any | ResponseError:
    """Decode *line* into the reply value or the error it stands for.

    Returns the ``response`` value on success.  Failures are returned, not
    raised, because the caller hands them to a waiting future.  ``NaN`` and
    ``Infinity`` are not JSON and make the line malformed.
    """
    try:
        obj = json.loads(line, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        return MalformedResponseError(line, str(exc))

    if not isinstance(obj, dict):
        return InvalidResponseShapeError(line)

    reply = HelperReply.model_validate(obj)
    if reply.is_error:
        return HelperReportedError(reply.error)
    if reply.has_response:
        return reply.response
    return InvalidResponseShapeError(line)
