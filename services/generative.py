"""Model-generated suggestions using a text-generation backend."""

import time
from typing import Callable, Optional

from config import settings
from models.suggestion import Suggestion
from services.cancellation import OperationCancelled
from services.claude_client import ConversationTurn, SuggestionBackend
from services.sources import SuggestionRequest, SuggestionSource
from utils.logger import log
from utils.prompts import get_system_prompt, get_user_prompt
from utils.text import get_conversation_context

# Accepted suggestion length bounds (characters)
MIN_SUGGESTION_LENGTH = 2
MAX_SUGGESTION_LENGTH = 100


def validate_suggestion(text: str, current_input: str) -> tuple[str, Optional[str]]:
    """
    Validate generated suggestion text.

    Args:
        text: Raw text returned by the backend
        current_input: What the user has typed so far

    Returns:
        Tuple of (trimmed text, rejection reason if rejected)
    """
    cleaned = text.strip()

    if not cleaned:
        return "", "Rejected empty suggestion"

    if len(cleaned) < MIN_SUGGESTION_LENGTH:
        return "", f"Rejected suggestion (too short): {len(cleaned)} < {MIN_SUGGESTION_LENGTH}"

    if len(cleaned) > MAX_SUGGESTION_LENGTH:
        return "", f"Rejected suggestion (too long): {len(cleaned)} > {MAX_SUGGESTION_LENGTH}"

    typed = current_input.strip()
    if typed and cleaned == typed:
        return "", "Rejected suggestion identical to current input"

    return cleaned, None


class GenerativeSource(SuggestionSource):
    """Asks the backend to predict the user's input."""

    name = "generative"

    def __init__(
        self,
        backend: SuggestionBackend,
        model: str,
        is_current: Callable[[int], bool],
        max_context_messages: int = settings.suggestion_context_messages,
        max_output_tokens: int = settings.suggestion_max_output_tokens,
        temperature: float = settings.suggestion_temperature,
    ):
        self._backend = backend
        self._model = model
        self._is_current = is_current
        self._max_context_messages = max_context_messages
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature

    def applies(self, request: SuggestionRequest) -> bool:
        return True

    async def produce(self, request: SuggestionRequest) -> Optional[Suggestion]:
        return await self.generate(request)

    async def generate(self, request: SuggestionRequest) -> Optional[Suggestion]:
        """
        Generate a suggestion for the request.

        Returns None when the context is blank, the call was cancelled, the
        output fails validation or the request epoch is no longer current.

        Raises:
            Exception: Any backend failure other than cancellation
        """
        context = "\n".join(
            get_conversation_context(request.messages, max_messages=self._max_context_messages)
        )
        if not context.strip():
            return None

        turns: list[ConversationTurn] = [
            {"role": "user", "content": get_user_prompt(context, request.current_input)}
        ]

        if request.token.cancelled:
            log.debug("Suggestion request cancelled before sending", {"epoch": request.epoch})
            return None

        start_time = time.time() * 1000
        try:
            raw_text = await request.token.run(
                self._backend.send_message(
                    turns,
                    model=self._model,
                    max_output_tokens=self._max_output_tokens,
                    temperature=self._temperature,
                    system_instruction=get_system_prompt(),
                )
            )
        except OperationCancelled:
            log.debug("Suggestion request cancelled", {"epoch": request.epoch})
            return None

        elapsed = time.time() * 1000 - start_time

        if not self._is_current(request.epoch):
            log.debug("Discarding stale suggestion", {"epoch": request.epoch, "elapsed": elapsed})
            return None

        text, reason = validate_suggestion(raw_text, request.current_input)
        if reason:
            log.debug(reason, {"epoch": request.epoch, "elapsed": elapsed})
            return None

        log.info(
            "Suggestion generated",
            {
                "epoch": request.epoch,
                "model": self._model,
                "elapsed": elapsed,
                "suggestion": text,
            },
        )

        return Suggestion(text=text, confidence="high", source="generative")
