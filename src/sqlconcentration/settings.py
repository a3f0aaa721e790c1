"""Typed game settings with defaults and a validated merge."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"


class MatchedPairBehavior(str, Enum):
    """What happens to a matched pair on the board. Only `stay` is defined."""

    STAY = "stay"


class Settings(BaseModel):
    """User-tunable options, persisted under their camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    matched_pair_behavior: MatchedPairBehavior = Field(MatchedPairBehavior.STAY, alias="matchedPairBehavior")
    auto_advance: bool = Field(False, alias="autoAdvance")
    timer_duration: int = Field(60, alias="timerDuration", ge=1, le=3600)
    openai_api_key: str = Field("", alias="openaiApiKey", repr=False)
    listen_speak_explanation: bool = Field(True, alias="listenSpeakExplanation")
    listen_speak_example: bool = Field(True, alias="listenSpeakExample")

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def resolved_api_key(self) -> str:
        """Stored key, else the environment's."""
        return self.openai_api_key.strip() or os.environ.get(API_KEY_ENV, "").strip()


def setting_keys() -> dict[str, str]:
    """Map both persisted (camelCase) and attribute names to the persisted name."""
    keys: dict[str, str] = {}
    for name, info in Settings.model_fields.items():
        alias = info.alias or name
        keys[alias] = alias
        keys[name] = alias
    return keys


def merge_settings(base: Settings, overrides: Mapping[str, Any]) -> Settings:
    """Apply `overrides` on top of `base` one key at a time.

    Unknown keys and values that fail validation are skipped with a warning,
    leaving the base value in place.
    """
    keys = setting_keys()
    data = base.to_storage()
    for raw_key, value in overrides.items():
        key = keys.get(raw_key)
        if key is None:
            logger.debug("Ignoring unknown setting %r", raw_key)
            continue
        candidate = {**data, key: value}
        try:
            Settings.model_validate(candidate)
        except ValidationError as exc:
            logger.warning("Ignoring invalid value for setting %s: %s", key, exc.errors()[0].get("msg", exc))
            continue
        data = candidate
    return Settings.model_validate(data)
