import random

from sqlconcentration.models import Card
from sqlconcentration.scheduler import ManualClock, Scheduler
from sqlconcentration.timed import COUNTDOWN_SECONDS, TimedEngine, award_for


def _engine(scheduler: Scheduler, finals: list[int]) -> TimedEngine:
    return TimedEngine(scheduler, random.Random(4), on_finish=finals.append)


def test_award_scaling() -> None:
    assert award_for(5) == 50
    assert award_for(3) == 30
    assert award_for(1) == 10
    assert award_for(0) == 10


def test_thumbs_up_with_three_seconds_left(
    clock: ManualClock, scheduler: Scheduler, two_cards: tuple[Card, ...]
) -> None:
    engine = _engine(scheduler, [])
    engine.start(two_cards)
    clock.advance(2)
    scheduler.tick()
    assert engine.state.time_left == 3
    assert engine.thumbs_up() == 30
    assert engine.state.score == 30
    assert engine.state.index == 1
    assert engine.state.time_left == COUNTDOWN_SECONDS


def test_timeout_awards_nothing_and_advances(
    clock: ManualClock, scheduler: Scheduler, two_cards: tuple[Card, ...]
) -> None:
    resolved: list[tuple[str, int]] = []
    engine = _engine(scheduler, [])
    engine.on_resolve = lambda card, points: resolved.append((card.id, points))
    first = engine.start(two_cards)
    assert first is not None

    clock.advance(COUNTDOWN_SECONDS)
    scheduler.tick()
    assert resolved == [(first.id, 0)]
    assert engine.state.index == 1
    assert engine.thumbs_up(card_index=0) == 0
    assert engine.state.score == 0


def test_manual_resolution_cancels_countdown(
    clock: ManualClock, scheduler: Scheduler, two_cards: tuple[Card, ...]
) -> None:
    finals: list[int] = []
    engine = _engine(scheduler, finals)
    engine.start(two_cards)
    engine.thumbs_down()
    engine.thumbs_up()
    assert finals == [50]
    assert scheduler.pending() == 0
    clock.advance(30)
    assert scheduler.tick() == 0
    assert engine.current is None


def test_empty_cards_finish_at_once(scheduler: Scheduler) -> None:
    finals: list[int] = []
    engine = _engine(scheduler, finals)
    assert engine.start([]) is None
    assert finals == [0]
    assert engine.thumbs_up() == 0


def test_stop_leaves_no_timer(clock: ManualClock, scheduler: Scheduler, two_cards: tuple[Card, ...]) -> None:
    engine = _engine(scheduler, [])
    engine.start(two_cards)
    engine.stop()
    engine.stop()
    assert scheduler.pending() == 0
    assert engine.current is None
