"""
Rate-limited progress notifications for the transfer executor.
"""
import time
from typing import Callable, Optional

from ..models.data_models import ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressThrottle:
    """
    Accumulates completed transfers and forwards a ProgressEvent to the
    consumer at most once per ``min_interval`` seconds.

    Only the aggregating thread calls ``advance``; the consumer never sees
    a per-byte stream.
    """

    def __init__(self, callback: Optional[ProgressCallback], total_entries: int,
                 total_bytes: int, min_interval: float = 0.25, clock=time.monotonic):
        self.callback = callback
        self.total_entries = total_entries
        self.total_bytes = total_bytes
        self.min_interval = min_interval
        self._clock = clock
        self._entries = 0
        self._bytes = 0
        self._last_emit: Optional[float] = None
        self._dirty = False

    def advance(self, entries: int = 1, nbytes: int = 0) -> None:
        self._entries += entries
        self._bytes += nbytes
        self._dirty = True

        now = self._clock()
        if self._last_emit is None or now - self._last_emit >= self.min_interval:
            self._emit(now)

    def finish(self) -> None:
        """Emit the final state if anything changed since the last event."""
        if self._dirty:
            self._emit(self._clock())

    def snapshot(self) -> ProgressEvent:
        return ProgressEvent(
            entries_completed=self._entries,
            total_entries=self.total_entries,
            bytes_transferred=self._bytes,
            total_bytes=self.total_bytes
        )

    def _emit(self, now: float) -> None:
        self._last_emit = now
        self._dirty = False
        if self.callback is not None:
            self.callback(self.snapshot())
