"""Time-window suppression for bursty bridge messages.

The bridge tends to follow a real topology message with a spurious empty one.
Ignoring anything that arrives shortly after an accepted message removes most
of these without noticeably delaying genuine updates.
"""

from __future__ import annotations

import threading
from time import monotonic
from typing import Callable, Optional, TypeVar, Union

T = TypeVar("T")

DEFAULT_WINDOW_MS = 200.0


class _Suppressed:
    """Marker returned instead of a result when a call was debounced."""

    def __repr__(self) -> str:
        return "SUPPRESSED"


SUPPRESSED = _Suppressed()


class Debouncer:
    """Gate calls so that only one runs per ``window_ms``.

    One instance tracks one message stream; give each stream its own.
    The accepted timestamp is only committed when the wrapped call returns, so
    a call that raises does not open a suppression window.
    """

    def __init__(
        self,
        window_ms: float = DEFAULT_WINDOW_MS,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        if window_ms < 0:
            raise ValueError("window_ms must be non-negative")
        self._window_s = window_ms / 1000.0
        self._clock = clock
        self._lock = threading.Lock()
        self._last_accepted: Optional[float] = None

    @property
    def last_accepted(self) -> Optional[float]:
        """Clock reading of the last accepted call, ``None`` before the first."""
        return self._last_accepted

    def call(self, fn: Callable[..., T], *args: object) -> Union[T, _Suppressed]:
        """Invoke ``fn(*args)`` unless the previous accepted call was too recent."""
        with self._lock:
            now = self._clock()
            if self._last_accepted is not None and now - self._last_accepted < self._window_s:
                return SUPPRESSED
            result = fn(*args)
            self._last_accepted = now
            return result


__all__ = ["DEFAULT_WINDOW_MS", "Debouncer", "SUPPRESSED"]
