"""Load SQL decks from bundled JSON resources or user files."""

from __future__ import annotations

import json
import logging
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

from .models import Card, Deck, DeckEntry

logger = logging.getLogger(__name__)

LIBRARY_PACKAGE = "sqlconcentration.content.decks"
INDEX_FILE = "index.json"
FALLBACK_DECK_NAME = "Built-in"
FALLBACK_CARDS = (
    Card(
        id="1_1",
        command="SELECT",
        description="Retrieves data",
        syntax="SELECT col FROM table;",
        example="SELECT name FROM users;",
        explanation="SELECT retrieves data from tables.",
    ),
)

Root = Traversable | Path


class DeckImportError(ValueError):
    """A user-supplied deck file could not be used."""


def fallback_deck() -> Deck:
    return Deck(name=FALLBACK_DECK_NAME, cards=FALLBACK_CARDS)


def _text(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return "" if value is None else str(value)


def _card_from_dict(raw: Any) -> Card:
    """Build a card from raw JSON content."""
    if not isinstance(raw, dict):
        raise ValueError("Each card must be a JSON object.")
    card_id = _text(raw, "id").strip()
    command = _text(raw, "command").strip()
    if not card_id:
        raise ValueError("Card is missing an id.")
    if not command:
        raise ValueError(f"Card '{card_id}' has no command.")
    return Card(
        id=card_id,
        command=command,
        description=_text(raw, "description"),
        syntax=_text(raw, "syntax"),
        example=_text(raw, "example"),
        explanation=_text(raw, "explanation"),
        category=_text(raw, "category"),
    )


def parse_deck(raw: Any, name: str) -> Deck:
    """Build a deck from a parsed `{"cards": [...]}` document."""
    if not isinstance(raw, dict):
        raise ValueError("Deck file root must be a JSON object.")
    raw_cards = raw.get("cards")
    if not isinstance(raw_cards, list):
        raise ValueError("Deck file must contain a 'cards' list.")
    cards = [_card_from_dict(item) for item in raw_cards]
    seen: set[str] = set()
    for card in cards:
        if card.id in seen:
            raise ValueError(f"Duplicate card id: {card.id}")
        seen.add(card.id)
    return Deck(name=name, cards=tuple(cards))


def _entry_from_dict(raw: Any) -> DeckEntry:
    if not isinstance(raw, dict) or not raw.get("filename"):
        raise ValueError("Library entries need at least a filename.")
    filename = str(raw["filename"])
    return DeckEntry(
        name=str(raw.get("name") or filename),
        filename=filename,
        description=_text(raw, "description"),
        card_count=int(raw.get("cardCount", 0)),
        difficulty=_text(raw, "difficulty"),
    )


def parse_library(raw: Any) -> list[DeckEntry]:
    """Build library entries from a parsed `{"decks": [...]}` document."""
    if not isinstance(raw, dict) or not isinstance(raw.get("decks"), list):
        raise ValueError("Library index must contain a 'decks' list.")
    return [_entry_from_dict(item) for item in raw["decks"]]


def _library_root(root: Root | None) -> Root:
    return root if root is not None else resources.files(LIBRARY_PACKAGE)


def load_library(root: Root | None = None) -> list[DeckEntry]:
    """Read the deck index. A missing or broken index yields an empty library."""
    try:
        raw = json.loads((_library_root(root) / INDEX_FILE).read_text(encoding="utf-8-sig"))
        return parse_library(raw)
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Failed to load deck library: %s", exc)
        return []


def load_deck(filename: str, root: Root | None = None, name: str | None = None) -> Deck:
    """Load one library deck, falling back to the built-in deck on any failure."""
    try:
        raw = json.loads((_library_root(root) / filename).read_text(encoding="utf-8-sig"))
        return parse_deck(raw, name or filename)
    except (OSError, ValueError) as exc:
        logger.warning("Failed to load deck %s: %s", filename, exc)
        return fallback_deck()


def load_default_deck(root: Root | None = None) -> tuple[list[DeckEntry], Deck]:
    """Load the library and its first deck."""
    library = load_library(root)
    if not library:
        return library, fallback_deck()
    first = library[0]
    return library, load_deck(first.filename, root, first.name)


def import_deck(path: Path | str) -> Deck:
    """Read a user deck file; any problem raises DeckImportError."""
    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8-sig"))
    except OSError as exc:
        raise DeckImportError(f"Could not read {file_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise DeckImportError(f"{file_path.name} is not valid JSON: {exc}") from exc
    try:
        deck = parse_deck(raw, file_path.stem)
    except ValueError as exc:
        raise DeckImportError(str(exc)) from exc
    if not deck.cards:
        raise DeckImportError(f"{file_path.name} contains no cards.")
    return deck
