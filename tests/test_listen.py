from pathlib import Path

import pytest

from sqlconcentration.ai_client import AIServiceError, MissingApiKeyError
from sqlconcentration.listen import FileAudioPlayer, ListenSession, speech_text
from sqlconcentration.models import Card
from sqlconcentration.settings import Settings

CARDS = (
    Card(id="1", command="SELECT", description="Reads rows", example="SELECT 1;"),
    Card(id="2", command="UPDATE", description="Changes rows"),
    Card(id="3", command="DELETE", description="Removes rows", example="DELETE FROM t;"),
)


class RecordingPlayer:
    def __init__(self) -> None:
        self.played: list[bytes] = []
        self.stops = 0
        self.on_play = None

    def play(self, audio: bytes) -> None:
        self.played.append(audio)
        if self.on_play is not None:
            self.on_play()

    def stop(self) -> None:
        self.stops += 1


def test_speech_text_follows_toggles() -> None:
    card = CARDS[0]
    assert speech_text(card, Settings()) == "SELECT. Reads rows. Example: SELECT 1;"
    assert speech_text(card, Settings(listenSpeakExample=False)) == "SELECT. Reads rows."
    assert speech_text(card, Settings(listenSpeakExplanation=False)) == "Example: SELECT 1;"
    assert speech_text(CARDS[1], Settings(listenSpeakExplanation=False)) == ""


def test_play_all_is_sequential() -> None:
    player = RecordingPlayer()
    session = ListenSession(lambda text: text.encode(), player)
    assert session.play_all(CARDS, Settings()) == 3
    assert [clip.decode().split(".")[0] for clip in player.played] == ["SELECT", "UPDATE", "DELETE"]


def test_stop_during_playback_aborts_remaining_clips() -> None:
    player = RecordingPlayer()
    session = ListenSession(lambda text: text.encode(), player)
    player.on_play = lambda: session.stop() if len(player.played) == 2 else None

    assert session.play_all(CARDS, Settings()) == 2
    assert len(player.played) == 2


def test_failed_clip_does_not_stop_the_sequence() -> None:
    player = RecordingPlayer()
    errors: list[str] = []

    def synthesize(text: str) -> bytes:
        if text.startswith("UPDATE"):
            raise AIServiceError("boom")
        return text.encode()

    session = ListenSession(synthesize, player)
    played = session.play_all(CARDS, Settings(), on_error=lambda card, exc: errors.append(card.id))
    assert played == 2
    assert errors == ["2"]


def test_missing_key_aborts_before_any_clip() -> None:
    player = RecordingPlayer()

    def synthesize(text: str) -> bytes:
        raise MissingApiKeyError("no key")

    session = ListenSession(synthesize, player)
    with pytest.raises(MissingApiKeyError):
        session.play_all(CARDS, Settings())
    assert player.played == []


def test_play_card_with_nothing_to_say() -> None:
    player = RecordingPlayer()
    session = ListenSession(lambda text: text.encode(), player)
    assert session.play_card(CARDS[1], Settings(listenSpeakExplanation=False)) is False
    assert session.play_card(CARDS[0], Settings()) is True
    assert len(player.played) == 1


def test_file_player_writes_numbered_clips(tmp_path: Path) -> None:
    written: list[Path] = []
    player = FileAudioPlayer(tmp_path / "audio", on_clip=written.append)
    player.play(b"one")
    player.play(b"two")
    assert [path.name for path in written] == ["clip-001.mp3", "clip-002.mp3"]
    assert written[1].read_bytes() == b"two"
