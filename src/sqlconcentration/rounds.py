"""Round bookkeeping: memorisation display, auto-start countdown, restart and advance."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence

from .engine import PairMatchingEngine
from .models import Card, GameCard
from .scheduler import Scheduler, TimerHandle
from .shuffle import fisher_yates

logger = logging.getLogger(__name__)

AUTO_START_TICK_SECONDS = 1.0


class RoundController:
    """Drive the Concentration engine from the memorisation screen."""

    def __init__(
        self,
        engine: PairMatchingEngine,
        scheduler: Scheduler,
        rng: random.Random | None = None,
    ) -> None:
        self.engine = engine
        self.scheduler = scheduler
        self.rng = rng if rng is not None else random.Random()
        self.round_number = 1
        self.display_cards: list[Card] = []
        self.commands_hidden = False
        self.explanations_hidden = False
        self.seconds_until_start: int | None = None
        self.on_countdown: Callable[[int], None] | None = None
        self.on_auto_start: Callable[[], None] | None = None
        self._auto_timer: TimerHandle | None = None

    def load(self, cards: Sequence[Card]) -> None:
        """Replace the display copy with a new deck's cards and reset the round counter."""
        self.cancel_auto_start()
        self.display_cards = list(cards)
        self.round_number = 1

    def active_cards(self) -> tuple[Card, ...]:
        """The card set the next round is built from."""
        return tuple(self.display_cards)

    def scramble_display(self) -> list[Card]:
        """Re-shuffle the memorisation screen order."""
        fisher_yates(self.display_cards, self.rng)
        return self.display_cards

    def toggle_commands(self) -> bool:
        self.commands_hidden = not self.commands_hidden
        return self.commands_hidden

    def toggle_explanations(self) -> bool:
        self.explanations_hidden = not self.explanations_hidden
        return self.explanations_hidden

    @property
    def auto_start_pending(self) -> bool:
        return self._auto_timer is not None

    def start_auto_start(self, duration_seconds: int) -> None:
        """Begin the pre-round countdown; any earlier countdown is dropped first."""
        self.cancel_auto_start()
        self.seconds_until_start = max(1, int(duration_seconds))
        self._auto_timer = self.scheduler.call_every(AUTO_START_TICK_SECONDS, self._auto_tick)
        logger.debug("Auto-start countdown set for %d seconds", self.seconds_until_start)

    def cancel_auto_start(self) -> None:
        """Stop the pre-round countdown. Safe to call when none is running."""
        self.scheduler.cancel(self._auto_timer)
        self._auto_timer = None
        self.seconds_until_start = None

    def _auto_tick(self) -> None:
        if self._auto_timer is None or self.seconds_until_start is None:
            return
        self.seconds_until_start -= 1
        if self.on_countdown is not None:
            self.on_countdown(self.seconds_until_start)
        if self.seconds_until_start > 0:
            return
        self.cancel_auto_start()
        if self.on_auto_start is not None:
            self.on_auto_start()
        else:
            self.start_round()

    def start_round(self) -> list[GameCard]:
        """Build a new board for the current round number."""
        self.cancel_auto_start()
        return self.engine.start_round(self.active_cards(), self.round_number)

    def restart_round(self) -> list[GameCard]:
        return self.start_round()

    def next_round(self) -> list[GameCard]:
        self.round_number += 1
        return self.start_round()
