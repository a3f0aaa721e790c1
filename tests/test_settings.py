import logging
from pathlib import Path

import pytest

from sqlconcentration.settings import API_KEY_ENV, MatchedPairBehavior, Settings, merge_settings
from sqlconcentration.settings_store import SettingsStore


def test_defaults() -> None:
    settings = Settings()
    assert settings.matched_pair_behavior is MatchedPairBehavior.STAY
    assert settings.auto_advance is False
    assert settings.timer_duration == 60
    assert settings.openai_api_key == ""
    assert settings.listen_speak_explanation is True
    assert settings.listen_speak_example is True


def test_storage_uses_camel_case_keys() -> None:
    assert Settings().to_storage() == {
        "matchedPairBehavior": "stay",
        "autoAdvance": False,
        "timerDuration": 60,
        "openaiApiKey": "",
        "listenSpeakExplanation": True,
        "listenSpeakExample": True,
    }


def test_merge_accepts_aliases_and_field_names() -> None:
    merged = merge_settings(Settings(), {"autoAdvance": True, "timer_duration": "30"})
    assert merged.auto_advance is True
    assert merged.timer_duration == 30


def test_merge_skips_invalid_and_unknown_values(caplog: pytest.LogCaptureFixture) -> None:
    base = Settings(timerDuration=45)
    with caplog.at_level(logging.WARNING, logger="sqlconcentration.settings"):
        merged = merge_settings(
            base,
            {"timerDuration": "soon", "matchedPairBehavior": "remove", "theme": "dark", "listenSpeakExample": False},
        )
    assert merged.timer_duration == 45
    assert merged.matched_pair_behavior is MatchedPairBehavior.STAY
    assert merged.listen_speak_example is False
    assert "timerDuration" in caplog.text
    assert "matchedPairBehavior" in caplog.text


def test_timer_duration_must_be_positive() -> None:
    assert merge_settings(Settings(), {"timerDuration": 0}).timer_duration == 60


def test_api_key_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(API_KEY_ENV, "env-key")
    assert Settings().resolved_api_key() == "env-key"
    assert Settings(openaiApiKey="stored").resolved_api_key() == "stored"
    monkeypatch.delenv(API_KEY_ENV)
    assert Settings().resolved_api_key() == ""


def test_api_key_not_in_repr() -> None:
    assert "secret" not in repr(Settings(openaiApiKey="secret"))


def test_store_round_trip(tmp_path: Path) -> None:
    db_path = tmp_path / "data" / "settings.db"
    store = SettingsStore(db_path)
    assert store.load() == Settings()
    store.save(merge_settings(Settings(), {"autoAdvance": True, "timerDuration": 15}))
    store.close()

    reopened = SettingsStore(db_path)
    loaded = reopened.load()
    reopened.close()
    assert loaded.auto_advance is True
    assert loaded.timer_duration == 15


def test_store_ignores_corrupt_rows() -> None:
    store = SettingsStore(":memory:")
    with store._conn:  # noqa: SLF001
        store._conn.execute(  # noqa: SLF001
            "INSERT INTO settings (key, value, updated_at) VALUES ('autoAdvance', '{not json', 'now')"
        )
        store._conn.execute(  # noqa: SLF001
            "INSERT INTO settings (key, value, updated_at) VALUES ('timerDuration', '-4', 'now')"
        )
    assert store.raw_values() == {"timerDuration": -4}
    assert store.load() == Settings()


def test_migration_sets_user_version_and_schema_history() -> None:
    store = SettingsStore(":memory:")
    version = int(store._conn.execute("PRAGMA user_version").fetchone()[0])  # noqa: SLF001
    assert version == 1
    rows = store._conn.execute("SELECT version FROM schema_migrations ORDER BY version").fetchall()  # noqa: SLF001
    assert [int(row["version"]) for row in rows] == [1]


def test_newer_schema_is_rejected(tmp_path: Path) -> None:
    db_path = tmp_path / "future.db"
    store = SettingsStore(db_path)
    with store._conn:  # noqa: SLF001
        store._conn.execute("PRAGMA user_version = 99")  # noqa: SLF001
    store.close()
    with pytest.raises(RuntimeError, match="newer than supported"):
        SettingsStore(db_path)
