"""
AI metadata enrichment for CloudMusic.

Asks an LLM (through LiteLLM) for a short description and a one-word mood
for a song. Enrichment is optional: every failure degrades to placeholder
text instead of raising.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from .models import SongDescription

logger = logging.getLogger(__name__)

# Type alias for LLM completion functions (litellm.completion signature)
CompletionFn = Callable[..., Any]

DEFAULT_MODEL = "gemini/gemini-2.0-flash"

PLACEHOLDER_DESCRIPTION = SongDescription("Local track description placeholder.", "Neutral")
UNAVAILABLE_DESCRIPTION = SongDescription("Music metadata unavailable.", "Unknown")

_PROMPT = (
    'Generate a short, engaging description (max 20 words) and a single word '
    '\'mood\' for the song "{title}" by "{artist}". Respond with a JSON object '
    'with the keys "description" and "mood".'
)


class MetadataClient:
    """Client for song descriptions using LiteLLM."""

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        completion_fn: Optional[CompletionFn] = None,
    ):
        """
        Initialize MetadataClient.

        Args:
            model: LiteLLM model name (defaults to $CLOUDMUSIC_LLM_MODEL or DEFAULT_MODEL)
            api_key: Provider API key (defaults to $CLOUDMUSIC_LLM_API_KEY, then $API_KEY)
            completion_fn: LLM completion function (defaults to litellm.completion)
        """
        self.model = model or os.environ.get("CLOUDMUSIC_LLM_MODEL") or DEFAULT_MODEL
        self.api_key = api_key or os.environ.get("CLOUDMUSIC_LLM_API_KEY") or os.environ.get("API_KEY")
        self._completion_fn = completion_fn

    def is_configured(self) -> bool:
        """Local Ollama models need no key; every other provider does."""
        if self.model.startswith("ollama/"):
            return True
        return bool(self.api_key)

    def _complete(self, messages: List[Dict[str, str]]) -> Any:
        completion_fn = self._completion_fn
        if completion_fn is None:
            import litellm

            litellm.drop_params = True
            completion_fn = litellm.completion

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.7,
            "max_tokens": 120,
            "response_format": {"type": "json_object"},
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return completion_fn(**kwargs)

    def describe(self, title: str, artist: str) -> SongDescription:
        """
        Describe a song. Never raises.

        Returns:
            SongDescription; placeholder text when unconfigured or on any failure
        """
        if not self.is_configured():
            logger.warning("No LLM API key configured, skipping metadata enhancement")
            return PLACEHOLDER_DESCRIPTION

        messages = [{"role": "user", "content": _PROMPT.format(title=title, artist=artist)}]

        try:
            response = self._complete(messages)
            content = response.choices[0].message.content
            if not content:
                return UNAVAILABLE_DESCRIPTION

            data = json.loads(content)
            description = str(data.get("description") or "").strip()
            mood = str(data.get("mood") or "").strip()
            if not description or not mood:
                return UNAVAILABLE_DESCRIPTION
            return SongDescription(description=description, mood=mood)
        except Exception as e:
            logger.error(f"Error fetching song metadata for '{title}' by '{artist}': {str(e)}")
            return UNAVAILABLE_DESCRIPTION


def describe(title: str, artist: str, client: Optional[MetadataClient] = None) -> SongDescription:
    """Describe a song with a default MetadataClient (see MetadataClient.describe)."""
    return (client or MetadataClient()).describe(title, artist)
