"""
Observable holder for the latest aggregation result.

One writer publishes; readers see whatever was published last. A new fetch
does not cancel one still in flight, so the last to complete wins.
"""

import threading
from concurrent.futures import Future
from typing import Callable, Optional


class SummaryCell:
    """Last-write-wins state cell with change callbacks."""

    def __init__(self, initial=None):
        self._value = initial
        self._version = 0
        self._subscribers = []
        self._lock = threading.Lock()

    @property
    def value(self):
        return self._value

    @property
    def version(self) -> int:
        """Number of publishes so far."""
        return self._version

    def publish(self, value) -> None:
        with self._lock:
            self._value = value
            self._version += 1
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(value)

    def subscribe(self, callback: Callable) -> Callable:
        """Register `callback(value)`; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe


def publish_when_done(future: Future, cell: SummaryCell, on_error: Optional[Callable] = None) -> Future:
    """
    Publish the future's result into `cell` once it completes.
    A failed fetch leaves the cell untouched; `on_error(exc)` is called instead.
    """
    def done(f: Future):
        if f.cancelled():
            return
        error = f.exception()
        if error is not None:
            if on_error is not None:
                on_error(error)
            return
        cell.publish(f.result())

    future.add_done_callback(done)
    return future
