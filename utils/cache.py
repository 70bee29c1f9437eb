"""In-memory cache for suggestions keyed by conversational context."""

from typing import Callable, Optional, Sequence

from models.message import ConversationMessage
from models.suggestion import Suggestion, now_ms
from utils.text import extract_text

# Default cache expiry in milliseconds (2 minutes)
DEFAULT_CACHE_EXPIRY_MS = 120000

# Default maximum cache size
DEFAULT_CACHE_MAX_SIZE = 50

# Fingerprint truncation bounds
FINGERPRINT_MESSAGES = 3
FINGERPRINT_MESSAGE_CHARS = 50
FINGERPRINT_INPUT_CHARS = 30


def make_fingerprint(messages: Sequence[ConversationMessage], current_input: str) -> str:
    """
    Generate a cache key from the recent conversation and the typed input.

    Uses the first 50 chars of the last 3 messages and the first 30 chars
    of the input. Contexts sharing these prefixes share a cache slot.
    """
    context = "|".join(
        f"{m.role}:{extract_text(m.content)[:FINGERPRINT_MESSAGE_CHARS]}"
        for m in messages[-FINGERPRINT_MESSAGES:]
    )
    return f"{context}_{current_input[:FINGERPRINT_INPUT_CHARS]}"


class SuggestionCache:
    """
    Bounded, time-aware suggestion cache.
    Expiry is lazy: callers run cleanup() before reading.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        expiry_ms: int = DEFAULT_CACHE_EXPIRY_MS,
        clock: Callable[[], float] = now_ms,
    ):
        self._cache: dict[str, Suggestion] = {}
        self._max_size = max_size
        self._expiry_ms = expiry_ms
        self._clock = clock

    def _is_expired(self, suggestion: Suggestion, now: float) -> bool:
        return now - suggestion.timestamp >= self._expiry_ms

    def get(self, fingerprint: str) -> Optional[Suggestion]:
        """
        Get a cached suggestion.
        Returns None if not cached or expired. Never mutates the cache.
        """
        entry = self._cache.get(fingerprint)
        if entry is None or self._is_expired(entry, self._clock()):
            return None
        return entry

    def put(self, fingerprint: str, suggestion: Suggestion) -> None:
        """Store a suggestion, replacing any previous entry for the key."""
        self._cache[fingerprint] = suggestion

    def cleanup(self) -> int:
        """
        Remove expired entries, then evict the oldest until the size bound holds.

        Returns:
            Number of removed entries
        """
        now = self._clock()
        expired = [key for key, entry in self._cache.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._cache[key]

        evicted = 0
        overflow = len(self._cache) - self._max_size
        if overflow > 0:
            oldest = sorted(self._cache.items(), key=lambda item: item[1].timestamp)
            for key, _ in oldest[:overflow]:
                del self._cache[key]
            evicted = overflow

        return len(expired) + evicted

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def size(self) -> int:
        """Get the current cache size."""
        return len(self._cache)
