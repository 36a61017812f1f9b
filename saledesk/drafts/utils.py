# saledesk/drafts/utils.py

"""Timing helpers for the sale draft engine."""
from __future__ import annotations

import threading
from typing import Any, Callable, Optional

TimerFactory = Callable[..., Any]


class Debouncer:
    """Collapse a burst of :meth:`schedule` calls into one callback.

    The callback fires with the last scheduled value once ``settle`` seconds
    pass without another call.  Each owner holds its own instance.
    """

    _EMPTY = object()

    def __init__(
        self,
        settle: float,
        callback: Callable[[Any], None],
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self.settle = settle
        self.callback = callback
        self.timer_factory = timer_factory
        self._timer = None
        self._generation = 0
        self._value: Any = self._EMPTY
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._value is not self._EMPTY

    def _disarm(self) -> None:
        # a timer already running its callback ignores a stale generation
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None

    def schedule(self, value: Any = None) -> None:
        with self._lock:
            self._disarm()
            self._value = value
            self._timer = self.timer_factory(self.settle, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def cancel_pending(self) -> None:
        with self._lock:
            self._disarm()
            self._value = self._EMPTY

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            value, self._value = self._value, self._EMPTY
            self._timer = None
        if value is not self._EMPTY:
            self.callback(value)


def one_shot(delay: float, fn: Callable[[], None], timer_factory: TimerFactory = threading.Timer):
    """Start a daemon timer running ``fn`` after ``delay`` seconds."""
    timer = timer_factory(delay, fn)
    timer.daemon = True
    timer.start()
    return timer
