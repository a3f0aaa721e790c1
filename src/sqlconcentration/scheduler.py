"""Cancellable deferred callbacks driven by an injectable clock.

Nothing runs on a background thread. Callers (the shell, or tests) call
`Scheduler.tick()` whenever they want due work to fire, so every state change
happens on the caller's stack.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import count

Clock = Callable[[], float]
Callback = Callable[[], None]

_sequence = count()


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards.")
        self.now += seconds


@dataclass(eq=False)
class TimerHandle:
    """Handle for one scheduled callback."""

    deadline: float
    callback: Callback
    interval: float | None = None
    cancelled: bool = False
    order: int = field(default_factory=lambda: next(_sequence))

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Schedule callbacks after a delay or on a fixed interval."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self.clock = clock
        self._handles: list[TimerHandle] = []

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        """Run `callback` once, `delay` seconds from now."""
        handle = TimerHandle(deadline=self.clock() + max(0.0, delay), callback=callback)
        self._handles.append(handle)
        return handle

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:
        """Run `callback` every `interval` seconds until cancelled; first run after one interval."""
        if interval <= 0:
            raise ValueError("Interval must be positive.")
        handle = TimerHandle(deadline=self.clock() + interval, callback=callback, interval=interval)
        self._handles.append(handle)
        return handle

    def cancel(self, handle: TimerHandle | None) -> None:
        """Cancel a handle. Unknown, finished, or already-cancelled handles are ignored."""
        if handle is None:
            return
        handle.cancel()
        if handle in self._handles:
            self._handles.remove(handle)

    def pending(self) -> int:
        return len([handle for handle in self._handles if not handle.cancelled])

    def next_deadline(self) -> float | None:
        live = [handle.deadline for handle in self._handles if not handle.cancelled]
        return min(live) if live else None

    def tick(self) -> int:
        """Fire every callback that is due now, oldest deadline first. Returns the number fired."""
        fired = 0
        now = self.clock()
        while True:
            due = [handle for handle in self._handles if not handle.cancelled and handle.deadline <= now]
            if not due:
                break
            handle = min(due, key=lambda item: (item.deadline, item.order))
            if handle.interval is not None:
                handle.deadline += handle.interval
            else:
                self._handles.remove(handle)
            fired += 1
            handle.callback()
        self._handles = [handle for handle in self._handles if not handle.cancelled]
        return fired
