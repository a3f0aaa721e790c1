from __future__ import annotations

import random
import shutil
import sys
from collections.abc import Iterator
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sqlconcentration.models import Card, Deck  # noqa: E402
from sqlconcentration.scheduler import ManualClock, Scheduler  # noqa: E402


@pytest.fixture(name="tmp_path")
def _workspace_tmp_path() -> Iterator[Path]:
    """Per-test scratch directory kept under the project at ``.tmp_pytest/``.

    Overrides pytest's builtin ``tmp_path`` because system temp locations are
    not reliable everywhere these tests run.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock: ManualClock) -> Scheduler:
    return Scheduler(clock)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def two_cards() -> tuple[Card, ...]:
    return (
        Card(id="A", command="SELECT", description="Retrieves data"),
        Card(id="B", command="INSERT", description="Adds rows"),
    )


@pytest.fixture
def two_card_deck(two_cards: tuple[Card, ...]) -> Deck:
    return Deck(name="Two", cards=two_cards)
