"""Per-request deadlines and cancellation."""

from __future__ import annotations

import time
from collections.abc import Callable

from pixelgate.security import StatusError


def _format_duration(seconds: float) -> str:
    if seconds >= 1:
        return f"{seconds:g}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:g}ms"
    if seconds >= 1e-6:
        return f"{seconds * 1e6:g}µs"
    return f"{round(seconds * 1e9)}ns"


class RequestTimer:
    """Tracks how long a request has run and whether it was cancelled or timed out."""

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.timeout = timeout
        self._clock = clock
        self.started = clock()
        self._cancelled_at: float | None = None

    def __enter__(self) -> RequestTimer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()

    def elapsed(self) -> float:
        """Seconds since the timer started."""
        return self._clock() - self.started

    @property
    def done(self) -> bool:
        return self._cancelled_at is not None or self.elapsed() >= self.timeout

    def cancel(self) -> None:
        """Mark the request as cancelled; a deadline already passed still counts as a timeout."""
        if self._cancelled_at is None:
            self._cancelled_at = self.elapsed()

    def check(self) -> None:
        """Raise StatusError 499 when cancelled or 503 when the deadline has passed."""
        elapsed = self.elapsed()
        if self._cancelled_at is not None and self._cancelled_at < self.timeout:
            raise StatusError(
                499, f"Request was cancelled after {_format_duration(elapsed)}", "Cancelled"
            )
        if elapsed >= self.timeout:
            raise StatusError(503, f"Timeout after {_format_duration(elapsed)}", "Timeout")