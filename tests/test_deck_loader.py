import json
import logging
from pathlib import Path

import pytest

from sqlconcentration import deck_loader
from sqlconcentration.deck_loader import (
    DeckImportError,
    fallback_deck,
    import_deck,
    load_deck,
    load_default_deck,
    load_library,
    parse_deck,
)


def _write(path: Path, payload: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_bundled_library_and_decks_load() -> None:
    library = load_library()
    assert library, "bundled library should not be empty"
    for entry in library:
        deck = load_deck(entry.filename, name=entry.name)
        assert deck.name == entry.name
        assert len(deck) == entry.card_count
        assert len({card.id for card in deck.cards}) == len(deck)


def test_default_deck_is_first_library_entry() -> None:
    library, deck = load_default_deck()
    assert deck.name == library[0].name


def test_parse_deck_optional_fields_default_to_empty() -> None:
    deck = parse_deck({"cards": [{"id": 1, "command": " SELECT ", "description": "Reads"}]}, "d")
    card = deck.cards[0]
    assert card.id == "1"
    assert card.command == "SELECT"
    assert card.syntax == ""
    assert card.category == ""


def test_missing_library_falls_back(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="sqlconcentration.deck_loader"):
        library, deck = load_default_deck(tmp_path)
    assert library == []
    assert deck == fallback_deck()
    assert "Failed to load deck library" in caplog.text


def test_broken_deck_falls_back(tmp_path: Path) -> None:
    _write(tmp_path / "index.json", {"decks": [{"name": "Bad", "filename": "bad.json", "cardCount": 1}]})
    (tmp_path / "bad.json").write_text("{oops", encoding="utf-8")
    library, deck = load_default_deck(tmp_path)
    assert [entry.name for entry in library] == ["Bad"]
    assert deck.cards == deck_loader.FALLBACK_CARDS


def test_library_entry_defaults(tmp_path: Path) -> None:
    _write(tmp_path / "index.json", {"decks": [{"filename": "x.json"}]})
    entry = load_library(tmp_path)[0]
    assert entry.name == "x.json"
    assert entry.card_count == 0
    assert entry.difficulty == ""


def test_import_valid_deck(tmp_path: Path) -> None:
    path = _write(tmp_path / "mine.json", {"cards": [{"id": "m1", "command": "MERGE", "description": "Upsert"}]})
    deck = import_deck(path)
    assert deck.name == "mine"
    assert deck.cards[0].command == "MERGE"


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ([], "root must be a JSON object"),
        ({"decks": []}, "'cards' list"),
        ({"cards": ["SELECT"]}, "JSON object"),
        ({"cards": [{"command": "SELECT"}]}, "missing an id"),
        ({"cards": [{"id": "a"}]}, "has no command"),
        ({"cards": [{"id": "a", "command": "X"}, {"id": "a", "command": "Y"}]}, "Duplicate card id"),
        ({"cards": []}, "contains no cards"),
    ],
)
def test_import_rejects_malformed_decks(tmp_path: Path, payload: object, message: str) -> None:
    path = _write(tmp_path / "bad.json", payload)
    with pytest.raises(DeckImportError, match=message):
        import_deck(path)


def test_import_reports_unreadable_files(tmp_path: Path) -> None:
    with pytest.raises(DeckImportError, match="Could not read"):
        import_deck(tmp_path / "missing.json")
    broken = tmp_path / "broken.json"
    broken.write_text("not json", encoding="utf-8")
    with pytest.raises(DeckImportError, match="not valid JSON"):
        import_deck(broken)
