"""Per-connection HTTP response state and event handlers."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

WritableHandler = Callable[[int], bool]
AbortedHandler = Callable[[], Any]
DataHandler = Callable[[bytes, bool], Any]


class ResponseState(enum.IntFlag):
    """Progress bits of the response currently being written."""

    NONE = 0
    STATUS_CALLED = 1
    WRITE_CALLED = 2
    END_CALLED = 4
    RESPONSE_PENDING = 8
    CONNECTION_CLOSE = 16


def _placeholder_on_writable(_offset: int) -> bool:
    return True


@dataclass(eq=False)
class HttpResponseData:
    """What one HTTP connection knows about its outstanding response.

    ``on_writable`` is asked to write more data when the socket drains,
    ``on_aborted`` fires if the connection goes away mid-response and
    ``in_stream`` receives request body chunks.
    """

    on_writable: WritableHandler | None = None
    on_aborted: AbortedHandler | None = None
    in_stream: DataHandler | None = None
    offset: int = 0
    received_bytes_per_timeout: int = 0
    state: ResponseState = ResponseState.NONE

    def mark_done(self) -> None:
        """Finish the current response: drop its handlers and clear the pending bit."""
        self.on_aborted = None
        # Also drop on_writable so draining behind the scenes does not emit it.
        self.on_writable = None
        self.state &= ~ResponseState.RESPONSE_PENDING

    def call_on_writable(self, offset: int) -> bool:
        """Run the writable handler with the given offset and return its verdict.

        The handler may finish the response (and so clear itself) while it
        runs; it is only put back if the slot was not cleared meanwhile.
        """
        borrowed = self.on_writable
        if borrowed is None:
            raise RuntimeError("no writable handler is attached")
        self.on_writable = _placeholder_on_writable
        try:
            result = bool(borrowed(offset))
        finally:
            if self.on_writable is not None:
                self.on_writable = borrowed
        return result