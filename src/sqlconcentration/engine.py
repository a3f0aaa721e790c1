"""Pair-matching (Concentration) engine: board, flips, scoring, completion."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .models import Card, CardRole, GameCard, RoundSummary
from .scheduler import Scheduler, TimerHandle
from .shuffle import fisher_yates

logger = logging.getLogger(__name__)

STARTING_SCORE = 1000
MATCH_POINTS = 50
MISMATCH_PENALTY = 10
MATCH_REVEAL_SECONDS = 0.5
MISMATCH_REVEAL_SECONDS = 1.0


class FlipOutcome(str, Enum):
    """What a flip request did to the board."""

    IGNORED = "ignored"
    FLIPPED = "flipped"
    MATCH = "match"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class FlipResult:
    """Board-facing result of one flip request."""

    outcome: FlipOutcome
    position: int
    score: int
    attempts: int


@dataclass
class RoundState:
    """Scoring state for the round in progress."""

    round_number: int = 1
    attempts: int = 0
    score: int = STARTING_SCORE
    matched_pair_ids: set[str] = field(default_factory=set)
    active: bool = False


class PairMatchingEngine:
    """Owns the shuffled board and resolves flipped pairs."""

    def __init__(
        self,
        scheduler: Scheduler,
        rng: random.Random | None = None,
        on_update: Callable[[], None] | None = None,
        on_complete: Callable[[RoundSummary], None] | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.rng = rng if rng is not None else random.Random()
        self.on_update = on_update
        self.on_complete = on_complete
        self.board: list[GameCard] = []
        self.selection: list[int] = []
        self.state = RoundState()
        self._round_cards: tuple[Card, ...] = ()
        self._resolution: TimerHandle | None = None
        self._generation = 0

    @property
    def card_count(self) -> int:
        """Number of cards the current board was built from."""
        return len(self._round_cards)

    @property
    def is_complete(self) -> bool:
        return self.card_count > 0 and len(self.state.matched_pair_ids) == self.card_count

    @property
    def awaiting_resolution(self) -> bool:
        return self._resolution is not None

    def start_round(self, cards: Sequence[Card], round_number: int = 1) -> list[GameCard]:
        """Build and shuffle a fresh board from `cards` and reset scoring."""
        self.stop()
        self._generation += 1
        self._round_cards = tuple(cards)
        board: list[GameCard] = []
        for card in self._round_cards:
            board.append(GameCard(card=card, role=CardRole.COMMAND))
            board.append(GameCard(card=card, role=CardRole.EXPLANATION))
        fisher_yates(board, self.rng)
        self.board = board
        self.selection = []
        # An empty card set is "no round": nothing to flip and nothing to complete.
        self.state = RoundState(round_number=max(1, round_number), active=bool(self._round_cards))
        logger.debug("Round %d started with %d cards", self.state.round_number, self.card_count)
        return self.board

    def stop(self) -> None:
        """Deactivate the board and drop any pending resolution."""
        self.scheduler.cancel(self._resolution)
        self._resolution = None
        self.selection = []
        self.state.active = False

    def flip(self, position: int) -> FlipResult:
        """Turn one board position face up, evaluating the pair when it is the second."""
        if not self._can_flip(position):
            return self._result(FlipOutcome.IGNORED, position)

        self.selection.append(position)
        if len(self.selection) < 2:
            return self._result(FlipOutcome.FLIPPED, position)

        self.state.attempts += 1
        first, second = (self.board[index] for index in self.selection)
        if first.pairs_with(second):
            self.state.score += MATCH_POINTS
            first.matched = True
            second.matched = True
            self.state.matched_pair_ids.add(first.source_card_id)
            outcome = FlipOutcome.MATCH
            delay = MATCH_REVEAL_SECONDS
        else:
            self.state.score = max(0, self.state.score - MISMATCH_PENALTY)
            outcome = FlipOutcome.MISMATCH
            delay = MISMATCH_REVEAL_SECONDS

        generation = self._generation
        self._resolution = self.scheduler.call_later(delay, lambda: self._resolve(generation))
        return self._result(outcome, position)

    def _can_flip(self, position: int) -> bool:
        if not self.state.active:
            return False
        if len(self.selection) >= 2:
            return False
        if not 0 <= position < len(self.board):
            return False
        if position in self.selection:
            return False
        return not self.board[position].matched

    def _resolve(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._resolution = None
        self.selection = []
        if self.on_update is not None:
            self.on_update()
        if self.is_complete and self.state.active:
            self.state.active = False
            summary = RoundSummary(
                round_number=self.state.round_number,
                score=self.state.score,
                attempts=self.state.attempts,
            )
            logger.info("Round %d complete: score=%d attempts=%d", summary.round_number, summary.score, summary.attempts)
            if self.on_complete is not None:
                self.on_complete(summary)

    def _result(self, outcome: FlipOutcome, position: int) -> FlipResult:
        return FlipResult(outcome=outcome, position=position, score=self.state.score, attempts=self.state.attempts)
