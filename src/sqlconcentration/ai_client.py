"""Text-to-speech and chat explanations through the OpenAI API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from openai import OpenAI, OpenAIError

from .models import Card

logger = logging.getLogger(__name__)

SPEECH_MODEL = "tts-1"
SPEECH_VOICE = "nova"
CHAT_MODEL = "gpt-4o-mini"


class MissingApiKeyError(RuntimeError):
    """No API key is configured; no request was made."""


class AIServiceError(RuntimeError):
    """The remote service failed or answered with something unusable."""


def explanation_prompt(card: Card) -> str:
    return (
        f"Explain this SQL command in detail: {card.command}\n\n"
        f"Syntax: {card.syntax}\n"
        f"Example: {card.example}\n\n"
        "Include:\n"
        "1. What it does\n"
        "2. When to use it\n"
        "3. Common patterns\n"
        "4. Tips and best practices\n"
        "5. Related commands"
    )


class AIClient:
    """Thin wrapper over the OpenAI SDK with per-process caches."""

    def __init__(self, api_key: str = "", client_factory: Callable[..., Any] = OpenAI) -> None:
        self._api_key = api_key
        self._client_factory = client_factory
        self._client: Any = None
        self._speech_cache: dict[str, bytes] = {}
        self._explanation_cache: dict[str, str] = {}

    @property
    def api_key(self) -> str:
        return self._api_key

    @api_key.setter
    def api_key(self, value: str) -> None:
        if value != self._api_key:
            self._api_key = value
            self._client = None

    def _require_client(self) -> Any:
        if not self._api_key:
            raise MissingApiKeyError("Set an OpenAI API key in Settings first.")
        if self._client is None:
            self._client = self._client_factory(api_key=self._api_key)
        return self._client

    def clear_cache(self) -> None:
        self._speech_cache.clear()
        self._explanation_cache.clear()

    def cached_speech_count(self) -> int:
        return len(self._speech_cache)

    def synthesize_speech(self, text: str) -> bytes:
        """Return audio for `text`, reusing earlier audio for identical text."""
        cached = self._speech_cache.get(text)
        if cached is not None:
            return cached
        client = self._require_client()
        try:
            response = client.audio.speech.create(model=SPEECH_MODEL, voice=SPEECH_VOICE, input=text)
            audio = bytes(response.content)
        except OpenAIError as exc:
            logger.error("Speech synthesis failed: %s", exc)
            raise AIServiceError(f"Speech synthesis failed: {exc}") from exc
        self._speech_cache[text] = audio
        return audio

    def explain_card(self, card: Card) -> str:
        """Ask the chat model for a longer explanation of one card, cached by prompt text."""
        prompt = explanation_prompt(card)
        cached = self._explanation_cache.get(prompt)
        if cached is not None:
            return cached
        client = self._require_client()
        try:
            response = client.chat.completions.create(
                model=CHAT_MODEL,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as exc:
            logger.error("Explanation request failed for %s: %s", card.id, exc)
            raise AIServiceError(f"Explanation request failed: {exc}") from exc
        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise AIServiceError("Explanation response was empty.")
        self._explanation_cache[prompt] = content
        return content
