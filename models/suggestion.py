"""Suggestion models shared by the sources, the cache and the coordinator."""

import time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from config import settings

Confidence = Literal["high", "medium", "low"]
SuggestionSource = Literal["generative", "heuristic", "historical"]


def now_ms() -> float:
    """Current wall-clock time in milliseconds."""
    return time.time() * 1000


class Suggestion(BaseModel):
    """A predicted completion or replacement for the user's input."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="Suggested input text")
    confidence: Confidence = Field(..., description="How much the source trusts the text")
    timestamp: float = Field(default_factory=now_ms, description="Creation time in ms")
    source: SuggestionSource = Field(..., description="Which source produced the text")

    def completion_for(self, current_input: str) -> str:
        """
        Get the part of the suggestion to display after the typed input.

        When the suggestion extends what the user typed (case-insensitive),
        only the remainder is returned. Otherwise the whole text is returned
        and acts as a replacement.
        """
        typed = current_input.strip()
        if not typed:
            return self.text
        if self.text.lower().startswith(typed.lower()):
            return self.text[len(typed):]
        return self.text


class SuggestionOptions(BaseModel):
    """Per-coordinator configuration accepted at construction."""

    debounce_ms: int = Field(
        default_factory=lambda: settings.suggestion_debounce_ms,
        ge=0,
        description="Delay before evaluating after the last input change",
    )
    model: str = Field(
        default_factory=lambda: settings.suggestion_model,
        min_length=1,
        description="Backend model identifier",
    )
    max_cache_size: int = Field(
        default_factory=lambda: settings.suggestion_cache_max_size,
        gt=0,
        description="Maximum number of cached suggestions",
    )
    cache_expiry_ms: int = Field(
        default_factory=lambda: settings.suggestion_cache_expiry_ms,
        gt=0,
        description="Cached suggestion time to live",
    )


class SuggestionState(BaseModel):
    """The state observed by the UI layer."""

    model_config = ConfigDict(frozen=True)

    suggestion: Optional[Suggestion] = None
    is_loading: bool = False
    error: Optional[str] = None
