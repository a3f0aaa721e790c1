"""Typed-answer practice: show a description, grade the typed SQL command."""

from __future__ import annotations

import math
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .models import Card
from .scheduler import Scheduler, TimerHandle
from .shuffle import shuffled

CORRECT_ADVANCE_SECONDS = 1.5
INCORRECT_ADVANCE_SECONDS = 3.0
HINT_ELLIPSIS = "..."


def normalize_answer(text: str) -> str:
    """Uppercase and collapse whitespace runs so spacing and case never decide a grade."""
    return " ".join(text.split()).upper()


def answer_matches(expected: str, answer: str) -> bool:
    return normalize_answer(expected) == normalize_answer(answer)


def hint_for(command: str) -> str:
    """Reveal the first third of the command, rounded up."""
    return command[: math.ceil(len(command) / 3)] + HINT_ELLIPSIS


@dataclass(frozen=True)
class PracticeGrade:
    """Outcome of grading one typed answer."""

    correct: bool
    expected: str


@dataclass(frozen=True)
class PracticeTally:
    """Final counts reported when a practice session ends."""

    correct_count: int
    incorrect_count: int


@dataclass
class PracticeState:
    """Position and counts for one practice session."""

    order: list[Card] = field(default_factory=list)
    index: int = 0
    correct_count: int = 0
    incorrect_count: int = 0


class PracticeEngine:
    """Walk a shuffled card order, grading typed commands."""

    def __init__(
        self,
        scheduler: Scheduler,
        rng: random.Random | None = None,
        on_advance: Callable[[Card | None], None] | None = None,
        on_finish: Callable[[PracticeTally], None] | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.rng = rng if rng is not None else random.Random()
        self.on_advance = on_advance
        self.on_finish = on_finish
        self.state = PracticeState()
        self.finished = True
        self._advance_timer: TimerHandle | None = None

    def start(self, cards: Sequence[Card]) -> Card | None:
        self.stop()
        self.state = PracticeState(order=shuffled(tuple(cards), self.rng))
        self.finished = False
        if not self.state.order:
            self._finish()
        return self.current

    def stop(self) -> None:
        self.scheduler.cancel(self._advance_timer)
        self._advance_timer = None

    @property
    def current(self) -> Card | None:
        if self.finished or self.state.index >= len(self.state.order):
            return None
        return self.state.order[self.state.index]

    @property
    def awaiting_advance(self) -> bool:
        return self._advance_timer is not None

    def tally(self) -> PracticeTally:
        return PracticeTally(correct_count=self.state.correct_count, incorrect_count=self.state.incorrect_count)

    def hint(self) -> str | None:
        card = self.current
        return hint_for(card.command) if card is not None else None

    def grade(self, answer: str) -> PracticeGrade | None:
        """Grade `answer` against the current card. Ignored while the previous grade is still showing."""
        card = self.current
        if card is None or self.awaiting_advance:
            return None
        correct = answer_matches(card.command, answer)
        if correct:
            self.state.correct_count += 1
            delay = CORRECT_ADVANCE_SECONDS
        else:
            self.state.incorrect_count += 1
            delay = INCORRECT_ADVANCE_SECONDS
        index = self.state.index
        self._advance_timer = self.scheduler.call_later(delay, lambda: self._advance_from(index))
        return PracticeGrade(correct=correct, expected=card.command)

    def skip(self) -> Card | None:
        """Move on without grading."""
        if self.current is None:
            return None
        self._advance_from(self.state.index)
        return self.current

    def _advance_from(self, index: int) -> None:
        if self.finished or index != self.state.index:
            return
        self.stop()
        self.state.index += 1
        if self.state.index >= len(self.state.order):
            self._finish()
            return
        if self.on_advance is not None:
            self.on_advance(self.current)

    def _finish(self) -> None:
        self.finished = True
        if self.on_finish is not None:
            self.on_finish(self.tally())
