"""Core domain models for SQL card decks and game boards."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CardRole(str, Enum):
    """Which face of a card a board entry shows."""

    COMMAND = "command"
    EXPLANATION = "explanation"


@dataclass(frozen=True)
class Card:
    """One SQL vocabulary card."""

    id: str
    command: str
    description: str = ""
    syntax: str = ""
    example: str = ""
    explanation: str = ""
    category: str = ""


@dataclass(frozen=True)
class Deck:
    """Named, ordered set of cards. Replaced wholesale, never edited."""

    name: str
    cards: tuple[Card, ...]

    def __len__(self) -> int:
        return len(self.cards)


@dataclass(frozen=True)
class DeckEntry:
    """Library index row describing one bundled deck file."""

    name: str
    filename: str
    description: str
    card_count: int
    difficulty: str


@dataclass
class GameCard:
    """One of the two board entries derived from a card for a round."""

    card: Card
    role: CardRole
    matched: bool = False

    @property
    def source_card_id(self) -> str:
        return self.card.id

    def pairs_with(self, other: GameCard) -> bool:
        """Same source card, opposite faces."""
        return self.source_card_id == other.source_card_id and self.role != other.role


@dataclass(frozen=True)
class RoundSummary:
    """Result emitted when every pair on the board has been matched."""

    round_number: int
    score: int
    attempts: int
