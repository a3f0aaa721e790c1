"""Timed recall: a short countdown per card, points for answering quickly."""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .models import Card
from .scheduler import Scheduler, TimerHandle
from .shuffle import shuffled

COUNTDOWN_SECONDS = 5
TICK_SECONDS = 1.0
POINTS_PER_SECOND = 10
MINIMUM_AWARD = 10


def award_for(seconds_remaining: int) -> int:
    return max(MINIMUM_AWARD, seconds_remaining * POINTS_PER_SECOND)


@dataclass
class TimedState:
    """Position, score and clock for one timed session."""

    order: list[Card] = field(default_factory=list)
    index: int = 0
    score: int = 0
    time_left: int = COUNTDOWN_SECONDS
    active: bool = False


class TimedEngine:
    """Present cards one at a time against a per-card countdown."""

    def __init__(
        self,
        scheduler: Scheduler,
        rng: random.Random | None = None,
        on_tick: Callable[[int], None] | None = None,
        on_resolve: Callable[[Card, int], None] | None = None,
        on_finish: Callable[[int], None] | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.rng = rng if rng is not None else random.Random()
        self.on_tick = on_tick
        self.on_resolve = on_resolve
        self.on_finish = on_finish
        self.state = TimedState()
        self._countdown: TimerHandle | None = None

    def start(self, cards: Sequence[Card]) -> Card | None:
        self.stop()
        self.state = TimedState(order=shuffled(tuple(cards), self.rng), active=True)
        self._present()
        return self.current

    def stop(self) -> None:
        self._stop_countdown()
        self.state.active = False

    @property
    def current(self) -> Card | None:
        if not self.state.active or self.state.index >= len(self.state.order):
            return None
        return self.state.order[self.state.index]

    def thumbs_up(self, card_index: int | None = None) -> int:
        """Credit the current card, scaled by the time left. Returns the points awarded."""
        if not self._is_current(card_index):
            return 0
        points = award_for(self.state.time_left)
        self._resolve(points)
        return points

    def thumbs_down(self, card_index: int | None = None) -> int:
        if self._is_current(card_index):
            self._resolve(0)
        return 0

    def _is_current(self, card_index: int | None) -> bool:
        if self.current is None:
            return False
        return card_index is None or card_index == self.state.index

    def _present(self) -> None:
        self._stop_countdown()
        if self.state.index >= len(self.state.order):
            self._finish()
            return
        self.state.time_left = COUNTDOWN_SECONDS
        index = self.state.index
        self._countdown = self.scheduler.call_every(TICK_SECONDS, lambda: self._tick(index))

    def _tick(self, index: int) -> None:
        if not self.state.active or index != self.state.index:
            return
        self.state.time_left = max(0, self.state.time_left - 1)
        if self.on_tick is not None:
            self.on_tick(self.state.time_left)
        if self.state.time_left == 0:
            self._resolve(0)

    def _resolve(self, points: int) -> None:
        self._stop_countdown()
        card = self.state.order[self.state.index]
        self.state.score += points
        if self.on_resolve is not None:
            self.on_resolve(card, points)
        self.state.index += 1
        self._present()

    def _stop_countdown(self) -> None:
        self.scheduler.cancel(self._countdown)
        self._countdown = None

    def _finish(self) -> None:
        self.state.active = False
        if self.on_finish is not None:
            self.on_finish(self.state.score)
