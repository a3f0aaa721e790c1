"""SQLite persistence for game settings."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .settings import Settings, merge_settings

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class SettingsStore:
    """Key/value settings table with forward-only migrations."""

    def __init__(self, db_path: Path | str) -> None:
        """Open (or create) the settings database."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Settings schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)

    def raw_values(self) -> dict[str, Any]:
        """Return stored values, skipping rows that are not valid JSON."""
        values: dict[str, Any] = {}
        for row in self._conn.execute("SELECT key, value FROM settings ORDER BY key").fetchall():
            try:
                values[str(row["key"])] = json.loads(row["value"])
            except json.JSONDecodeError:
                logger.warning("Discarding unreadable stored setting %s", row["key"])
        return values

    def load(self) -> Settings:
        """Defaults overlaid with whatever valid values were saved."""
        return merge_settings(Settings(), self.raw_values())

    def save(self, settings: Settings) -> None:
        now = datetime.now(UTC).isoformat()
        with self._conn:
            self._conn.executemany(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                [(key, json.dumps(value), now) for key, value in settings.to_storage().items()],
            )

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()
