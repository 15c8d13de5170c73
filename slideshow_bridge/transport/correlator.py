"""Transport layer: matching reply lines to waiting callers.

The helper protocol carries no message identifiers, so the only way to pair
a reply with its request is order: the n-th reply line answers the n-th
request line.  :class:`FifoCorrelator` keeps one future per request in a
queue and settles the oldest one for each line that arrives.

The contract is fragile.  A helper that answers twice, or skips an answer,
shifts every later reply onto the wrong caller and nothing here can detect
it.  :class:`Correlator` is the seam where an identifier-bearing protocol
would plug in without changing the bridge.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from typing import Any

from slideshow_bridge.exceptions import ChannelClosedError, ResponseError
from slideshow_bridge.transport.protocol import decode_reply


class Correlator(ABC):
    """Pairs outbound requests with inbound reply lines."""

    @abstractmethod
    def enqueue(self) -> asyncio.Future[Any]:
        """Register a request about to be written and return its future."""

    @abstractmethod
    def dispatch(self, line: str) -> None:
        """Settle the request that *line* answers."""

    @abstractmethod
    def discard(self, future: asyncio.Future[Any]) -> None:
        """Withdraw a request whose line was never written."""

    @abstractmethod
    def close(self, reason: str = "helper channel closed", returncode: int | None = None) -> None:
        """Fail every request still waiting with ChannelClosedError, and refuse new ones."""

    @property
    @abstractmethod
    def pending(self) -> int:
        """Number of requests written but not yet answered."""

    @property
    @abstractmethod
    def closed(self) -> bool: ...


class FifoCorrelator(Correlator):
    """Strict first-in first-out correlation.

    Args:
        on_unmatched: Called with a reply line that arrived while no request
            was waiting.  The line is dropped after the call.
        loop: Event loop the futures belong to.  Defaults to the running loop.
    """

    def __init__(
        self,
        on_unmatched: Callable[[str], None] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._queue: deque[asyncio.Future[Any]] = deque()
        self._on_unmatched = on_unmatched
        self._loop = loop
        self._closed: tuple[str, int | None] | None = None

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def closed(self) -> bool:
        return self._closed is not None

    def enqueue(self) -> asyncio.Future[Any]:
        if self._closed is not None:
            raise ChannelClosedError(*self._closed)
        loop = self._loop or asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        self._queue.append(future)
        return future

    def dispatch(self, line: str) -> None:
        if not self._queue:
            if self._on_unmatched is not None:
                self._on_unmatched(line)
            return

        # Decode first: a future that leaves the queue is always settled.
        outcome = decode_reply(line)
        future = self._queue.popleft()
        if future.done():
            # Caller gave up (cancelled or timed out); its reply is consumed here.
            return

        if isinstance(outcome, ResponseError):
            future.set_exception(outcome)
        else:
            future.set_result(outcome)

    def discard(self, future: asyncio.Future[Any]) -> None:
        try:
            self._queue.remove(future)
        except ValueError:
            return
        future.cancel()

    def close(self, reason: str = "helper channel closed", returncode: int | None = None) -> None:
        if self._closed is not None:
            return
        self._closed = (reason, returncode)
        while self._queue:
            future = self._queue.popleft()
            if not future.done():
                future.set_exception(ChannelClosedError(reason, returncode))
