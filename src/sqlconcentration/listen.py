"""Listen mode: read cards aloud one after another."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol

from .ai_client import AIServiceError
from .models import Card
from .settings import Settings

logger = logging.getLogger(__name__)


class AudioPlayer(Protocol):
    def play(self, audio: bytes) -> None:
        """Play `audio`, returning once playback has finished."""

    def stop(self) -> None:
        """Abort current playback, if any."""


class FileAudioPlayer:
    """Write clips to disk and hand their paths to a callback; the terminal has no speaker."""

    def __init__(self, directory: Path, on_clip: Callable[[Path], None] | None = None) -> None:
        self.directory = directory
        self.on_clip = on_clip
        self.clips_written = 0

    def play(self, audio: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.clips_written += 1
        path = self.directory / f"clip-{self.clips_written:03d}.mp3"
        path.write_bytes(audio)
        if self.on_clip is not None:
            self.on_clip(path)

    def stop(self) -> None:
        return None


def speech_text(card: Card, settings: Settings) -> str:
    """Compose the spoken text for a card from the listen toggles."""
    text = ""
    if settings.listen_speak_explanation:
        text += f"{card.command}. {card.description}. "
    if settings.listen_speak_example and card.example:
        text += f"Example: {card.example}"
    return text.strip()


class ListenSession:
    """Sequential playback of card audio with a cancellation flag."""

    def __init__(self, synthesize: Callable[[str], bytes], player: AudioPlayer) -> None:
        self.synthesize = synthesize
        self.player = player
        self.cancelled = False
        self.playing = False

    def play_card(self, card: Card, settings: Settings) -> bool:
        """Stop whatever is playing and read one card. Returns False when there is nothing to say."""
        self.stop()
        self.cancelled = False
        return self._play(card, settings)

    def play_all(
        self,
        cards: Sequence[Card],
        settings: Settings,
        on_error: Callable[[Card, AIServiceError], None] | None = None,
    ) -> int:
        """Read every card in order until finished or stopped. Returns the number of clips played."""
        self.stop()
        self.cancelled = False
        played = 0
        for card in cards:
            if self.cancelled:
                logger.debug("Playback cancelled after %d clips", played)
                break
            try:
                if self._play(card, settings):
                    played += 1
            except AIServiceError as exc:
                logger.warning("Skipping %s: %s", card.id, exc)
                if on_error is not None:
                    on_error(card, exc)
        return played

    def stop(self) -> None:
        self.cancelled = True
        if self.playing:
            self.player.stop()
            self.playing = False

    def _play(self, card: Card, settings: Settings) -> bool:
        text = speech_text(card, settings)
        if not text:
            return False
        audio = self.synthesize(text)
        if self.cancelled:
            return False
        self.playing = True
        try:
            self.player.play(audio)
        finally:
            self.playing = False
        return True
