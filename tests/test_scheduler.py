import pytest

from sqlconcentration.scheduler import ManualClock, Scheduler


def test_call_later_fires_once_when_due(clock: ManualClock, scheduler: Scheduler) -> None:
    fired: list[str] = []
    scheduler.call_later(0.5, lambda: fired.append("x"))

    clock.advance(0.4)
    assert scheduler.tick() == 0
    clock.advance(0.1)
    assert scheduler.tick() == 1
    clock.advance(10)
    assert scheduler.tick() == 0
    assert fired == ["x"]
    assert scheduler.pending() == 0


def test_call_every_catches_up_after_clock_jump(clock: ManualClock, scheduler: Scheduler) -> None:
    ticks: list[float] = []
    scheduler.call_every(1.0, lambda: ticks.append(clock()))

    clock.advance(3.5)
    assert scheduler.tick() == 3
    assert scheduler.next_deadline() == 4.0


def test_cancel_is_idempotent(clock: ManualClock, scheduler: Scheduler) -> None:
    fired: list[int] = []
    handle = scheduler.call_every(1.0, lambda: fired.append(1))
    scheduler.cancel(handle)
    scheduler.cancel(handle)
    scheduler.cancel(None)
    clock.advance(5)
    scheduler.tick()
    assert fired == []
    assert scheduler.pending() == 0
    assert scheduler.next_deadline() is None


def test_callback_can_cancel_its_own_repeating_timer(clock: ManualClock, scheduler: Scheduler) -> None:
    fired: list[int] = []
    holder = {}

    def once() -> None:
        fired.append(1)
        scheduler.cancel(holder["handle"])

    holder["handle"] = scheduler.call_every(1.0, once)
    clock.advance(5)
    scheduler.tick()
    assert fired == [1]


def test_due_callbacks_fire_in_deadline_order(clock: ManualClock, scheduler: Scheduler) -> None:
    order: list[str] = []
    scheduler.call_later(2.0, lambda: order.append("late"))
    scheduler.call_later(1.0, lambda: order.append("early"))
    clock.advance(2)
    scheduler.tick()
    assert order == ["early", "late"]


def test_invalid_interval_and_backwards_clock_rejected(clock: ManualClock, scheduler: Scheduler) -> None:
    with pytest.raises(ValueError):
        scheduler.call_every(0, lambda: None)
    with pytest.raises(ValueError):
        clock.advance(-1)
