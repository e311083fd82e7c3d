"""Per-thread event loop state: deferred callbacks, pre/post hooks and the cached date."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Hashable
from typing import Any

# Maximum delay before an HTTP connection with an outstanding request or
# rejected data is dropped (slow loris protection).
HTTP_IDLE_TIMEOUT_S = 10

# Minimum receive throughput per second; slower uploads get dropped.
HTTP_RECEIVE_THROUGHPUT_BYTES = 16 * 1024

# Size of the per-loop cork buffer.
CORK_BUFFER_SIZE = 16 * 1024

# How often the cached date header is refreshed, in seconds.
DATE_REFRESH_INTERVAL_S = 1.0

_WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

LoopHandler = Callable[["Loop"], Any]


def format_http_date(timestamp: float | None = None) -> str:
    """Format a Unix timestamp (default: now) as an HTTP Date header value in GMT."""
    if timestamp is None:
        timestamp = time.time()
    tm = time.gmtime(timestamp)
    # tm_wday counts from Monday; the table counts from Sunday.
    weekday = _WEEKDAYS[(tm.tm_wday + 1) % 7]
    return (
        f"{weekday}, {tm.tm_mday % 99:02d} {_MONTHS[tm.tm_mon - 1]} "
        f"{tm.tm_year % 9999:04d} {tm.tm_hour % 99:02d}:"
        f"{tm.tm_min % 99:02d}:{tm.tm_sec % 99:02d} GMT"
    )


class Loop:
    """A lazily created, per-thread loop.

    Callbacks handed to defer() may come from any thread; they run on the
    loop's own thread during the next iteration.
    """

    _lazy = threading.local()

    def __init__(self) -> None:
        self._defer_lock = threading.Lock()
        self._defer_queue: list[Callable[[], Any]] = []
        self._woken = threading.Event()
        self._pre_handlers: dict[Hashable, LoopHandler] = {}
        self._post_handlers: dict[Hashable, LoopHandler] = {}
        self._last_date_update = 0.0
        self.date = ""
        self.no_mark = False
        self.cork_buffer = bytearray()
        self.corked_socket: Any = None
        self.zlib_context: Any = None
        self.inflation_stream: Any = None
        self.deflation_stream: Any = None
        self.update_date()

    @classmethod
    def get(cls) -> "Loop":
        """Return this thread's loop, creating it on first use."""
        loop = getattr(cls._lazy, "loop", None)
        if loop is None:
            loop = cls()
            cls._lazy.loop = loop
        return loop

    def free(self) -> None:
        """Release this loop; the next get() on its thread creates a fresh one."""
        with self._defer_lock:
            self._defer_queue.clear()
        self._woken.clear()
        self._pre_handlers.clear()
        self._post_handlers.clear()
        self.cork_buffer.clear()
        self.corked_socket = None
        self.zlib_context = None
        self.inflation_stream = None
        self.deflation_stream = None
        if getattr(Loop._lazy, "loop", None) is self:
            Loop._lazy.loop = None

    def update_date(self, timestamp: float | None = None) -> str:
        """Refresh the cached Date header value and return it."""
        if timestamp is None:
            timestamp = time.time()
        self._last_date_update = time.monotonic()
        self.date = format_http_date(timestamp)
        return self.date

    def add_post_handler(self, key: Hashable, handler: LoopHandler) -> None:
        """Register a handler run after every iteration; an existing key is kept."""
        self._post_handlers.setdefault(key, handler)

    def remove_post_handler(self, key: Hashable) -> None:
        self._post_handlers.pop(key, None)

    def add_pre_handler(self, key: Hashable, handler: LoopHandler) -> None:
        """Register a handler run before every iteration; an existing key is kept."""
        self._pre_handlers.setdefault(key, handler)

    def remove_pre_handler(self, key: Hashable) -> None:
        self._pre_handlers.pop(key, None)

    def defer(self, callback: Callable[[], Any]) -> None:
        """Queue a callback to run on the loop's thread; safe from any thread."""
        with self._defer_lock:
            self._defer_queue.append(callback)
        self._woken.set()

    def wakeup(self) -> int:
        """Run the callbacks deferred so far and return how many ran.

        Callbacks deferred while draining wait for the next wakeup.
        """
        self._woken.clear()
        with self._defer_lock:
            queue, self._defer_queue = self._defer_queue, []
        for callback in queue:
            callback()
        return len(queue)

    def iterate(self) -> None:
        """Run one iteration: pre handlers, pending wakeups, post handlers."""
        if time.monotonic() - self._last_date_update >= DATE_REFRESH_INTERVAL_S:
            self.update_date()

        for handler in list(self._pre_handlers.values()):
            handler(self)

        if self._woken.is_set():
            self.wakeup()

        for handler in list(self._post_handlers.values()):
            handler(self)

        if self.corked_socket is not None:
            raise RuntimeError("cork buffer must not be held across event loop iterations")

    def run(self) -> None:
        """Iterate until no deferred work remains."""
        self.iterate()
        while self._woken.is_set():
            self.iterate()

    def set_silent(self, silent: bool) -> None:
        """Turn the identifying response header on or off."""
        self.no_mark = bool(silent)