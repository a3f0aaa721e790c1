"""Session context and the screen/mode state machine."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from enum import Enum

from .dragdrop import DragDropBoard
from .engine import PairMatchingEngine
from .models import Card, Deck, RoundSummary
from .practice import PracticeEngine, PracticeTally
from .rounds import RoundController
from .scheduler import Scheduler
from .settings import Settings
from .timed import TimedEngine

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Screens the game can show. Exactly one is active."""

    MODE_SELECT = "mode-select"
    PRE_GAME = "pre-game"
    CONCENTRATION = "concentration"
    DRAG_DROP = "drag-drop"
    LISTEN = "listen"
    PRACTICE = "practice"
    TIMED = "timed"


class GameSession:
    """Holds the active deck and one engine per mode, and switches between modes."""

    def __init__(
        self,
        deck: Deck,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.rng = rng if rng is not None else random.Random()
        self.settings = settings if settings is not None else Settings()
        self.engine = PairMatchingEngine(self.scheduler, self.rng, on_complete=self._round_completed)
        self.rounds = RoundController(self.engine, self.scheduler, self.rng)
        self.rounds.on_auto_start = self._auto_start
        self.practice = PracticeEngine(self.scheduler, self.rng, on_finish=self._practice_finished)
        self.timed = TimedEngine(self.scheduler, self.rng, on_finish=self._timed_finished)
        self.drag_drop = DragDropBoard(self.rng)
        self.on_leave_listen: Callable[[], None] | None = None
        self.last_round: RoundSummary | None = None
        self.last_practice: PracticeTally | None = None
        self.last_timed_score: int | None = None
        self.deck = deck
        self.rounds.load(deck.cards)
        self._mode = Mode.MODE_SELECT

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def cards(self) -> tuple[Card, ...]:
        """Cards the next mode entry will use."""
        return self.rounds.active_cards()

    def replace_deck(self, deck: Deck) -> None:
        """Swap in a new deck. Modes that hold a copy of the old cards are left for ModeSelect."""
        if self._mode not in (Mode.MODE_SELECT, Mode.PRE_GAME):
            self.transition(Mode.MODE_SELECT)
        self.rounds.load(deck.cards)
        self.deck = deck
        logger.info("Deck %r loaded with %d cards", deck.name, len(deck))
        if self._mode is Mode.PRE_GAME:
            self._enter(Mode.PRE_GAME)

    def update_settings(self, settings: Settings) -> None:
        self.settings = settings

    def transition(self, target: Mode) -> Mode:
        """Leave the current mode, then enter `target`. Re-entering a mode restarts it."""
        previous = self._mode
        self._leave(previous)
        self._mode = target
        self._enter(target)
        logger.debug("Mode %s -> %s", previous.value, target.value)
        return target

    def tick(self) -> int:
        return self.scheduler.tick()

    def _leave(self, mode: Mode) -> None:
        if mode is Mode.PRE_GAME:
            self.rounds.cancel_auto_start()
        elif mode is Mode.CONCENTRATION:
            self.engine.stop()
        elif mode is Mode.PRACTICE:
            self.practice.stop()
        elif mode is Mode.TIMED:
            self.timed.stop()
        elif mode is Mode.LISTEN and self.on_leave_listen is not None:
            self.on_leave_listen()

    def _enter(self, mode: Mode) -> None:
        if mode is Mode.PRE_GAME:
            if self.settings.auto_advance:
                self.rounds.start_auto_start(self.settings.timer_duration)
        elif mode is Mode.CONCENTRATION:
            self.last_round = None
            self.rounds.start_round()
        elif mode is Mode.DRAG_DROP:
            self.drag_drop.start(self.cards)
        elif mode is Mode.PRACTICE:
            self.last_practice = None
            self.practice.start(self.cards)
        elif mode is Mode.TIMED:
            self.last_timed_score = None
            self.timed.start(self.cards)

    def start_game(self) -> None:
        """Manual start from the memorisation screen."""
        self.transition(Mode.CONCENTRATION)

    def restart_round(self) -> None:
        if self._mode is not Mode.CONCENTRATION:
            self.transition(Mode.CONCENTRATION)
            return
        self.last_round = None
        self.rounds.restart_round()

    def next_round(self) -> None:
        self.last_round = None
        if self._mode is Mode.CONCENTRATION:
            self.rounds.next_round()
            return
        self.rounds.round_number += 1
        self.transition(Mode.CONCENTRATION)

    def _auto_start(self) -> None:
        if self._mode is Mode.PRE_GAME:
            self.transition(Mode.CONCENTRATION)

    def _round_completed(self, summary: RoundSummary) -> None:
        if self._mode is Mode.CONCENTRATION:
            self.last_round = summary

    def _practice_finished(self, tally: PracticeTally) -> None:
        if self._mode is Mode.PRACTICE:
            self.last_practice = tally

    def _timed_finished(self, score: int) -> None:
        if self._mode is Mode.TIMED:
            self.last_timed_score = score
