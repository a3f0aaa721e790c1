"""Application service tying decks, settings, AI enrichment and the game session together."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from .ai_client import AIClient, AIServiceError
from .deck_loader import Root, load_deck, load_default_deck
from .deck_loader import import_deck as read_deck_file
from .listen import AudioPlayer, ListenSession
from .models import Card, Deck, DeckEntry
from .scheduler import Scheduler
from .session import GameSession
from .settings import Settings, merge_settings
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)


class GameService:
    """Coordinates deck loading, settings and the per-mode engines."""

    def __init__(
        self,
        db_path: Path | str,
        player: AudioPlayer,
        library_root: Root | None = None,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        ai_client_factory: Callable[[str], AIClient] = AIClient,
    ) -> None:
        """Load settings and the default deck, and build the session."""
        self.store = SettingsStore(db_path)
        settings = self.store.load()
        self.library_root = library_root
        self.library, deck = load_default_deck(library_root)
        self.session = GameSession(deck, settings, scheduler=scheduler, rng=rng)
        self.ai = ai_client_factory(settings.resolved_api_key())
        self.listen = ListenSession(self.ai.synthesize_speech, player)
        self.session.on_leave_listen = self.listen.stop

    @property
    def settings(self) -> Settings:
        return self.session.settings

    @property
    def deck(self) -> Deck:
        return self.session.deck

    def list_library(self) -> list[DeckEntry]:
        return list(self.library)

    def select_deck(self, filename: str) -> Deck:
        """Load a library deck by filename; unknown or broken files fall back to the built-in deck."""
        entry = next((item for item in self.library if item.filename == filename), None)
        deck = load_deck(filename, self.library_root, entry.name if entry is not None else None)
        self.session.replace_deck(deck)
        return deck

    def import_deck(self, path: Path | str) -> Deck:
        """Replace the active deck with a user file. Raises DeckImportError and keeps the old deck on failure."""
        deck = read_deck_file(path)
        logger.info("Imported deck %r from %s", deck.name, path)
        self.session.replace_deck(deck)
        return deck

    def update_settings(self, overrides: Mapping[str, Any]) -> Settings:
        """Merge, persist and apply new setting values."""
        settings = merge_settings(self.settings, overrides)
        self.store.save(settings)
        self.session.update_settings(settings)
        self.ai.api_key = settings.resolved_api_key()
        return settings

    def play_card(self, card: Card) -> bool:
        return self.listen.play_card(card, self.settings)

    def play_all(self, on_error: Callable[[Card, AIServiceError], None] | None = None) -> int:
        return self.listen.play_all(self.session.cards, self.settings, on_error)

    def explain(self, card: Card) -> str:
        return self.ai.explain_card(card)

    def clear_audio_cache(self) -> None:
        self.ai.clear_cache()

    def close(self) -> None:
        self.listen.stop()
        self.store.close()
