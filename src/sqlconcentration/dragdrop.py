"""Drag-and-drop matching: drop each command onto its description."""

from __future__ import annotations

import random
from collections.abc import Sequence

from .models import Card
from .shuffle import shuffled


class DragDropBoard:
    """Attempt and match counting for one drag-and-drop session."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.items: list[Card] = []
        self.zones: list[Card] = []
        self.placed: set[str] = set()
        self.attempts = 0

    def start(self, cards: Sequence[Card]) -> None:
        self.items = shuffled(tuple(cards), self.rng)
        self.zones = shuffled(tuple(cards), self.rng)
        self.placed = set()
        self.attempts = 0

    @property
    def matches(self) -> int:
        return len(self.placed)

    @property
    def complete(self) -> bool:
        return self.matches == len(self.items)

    def is_disabled(self, item_id: str) -> bool:
        return item_id in self.placed

    def drop(self, item_id: str, zone_id: str) -> bool:
        """Record one drop; returns whether it landed on the matching zone. Unknown items are ignored."""
        if self.is_disabled(item_id) or item_id not in {card.id for card in self.items}:
            return False
        self.attempts += 1
        if item_id != zone_id:
            return False
        self.placed.add(item_id)
        return True
