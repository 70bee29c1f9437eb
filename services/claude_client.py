"""Text-generation backends for the generative suggestion source."""

import asyncio
from typing import Optional, Protocol, Sequence, TypedDict

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    TextBlock,
    query,
    # Error types for proper error handling
    ClaudeSDKError,
    CLINotFoundError,
    CLIConnectionError,
    ProcessError,
    CLIJSONDecodeError,
)

from config import settings
from utils.logger import log

# Re-export error types for use by other modules
__all__ = [
    "ConversationTurn",
    "SuggestionBackend",
    "ClaudeBackend",
    "get_timeout",
    "describe_backend_error",
    "ClaudeSDKError",
    "CLINotFoundError",
    "CLIConnectionError",
    "ProcessError",
    "CLIJSONDecodeError",
]

# Model-specific timeout defaults in seconds
MODEL_TIMEOUTS: dict[str, float] = {
    "haiku": 5.0,   # 5 seconds - fast model
    "sonnet": 10.0, # 10 seconds - quality model
    "opus": 30.0,   # 30 seconds - highest quality model
}

# Default timeout if model not found
DEFAULT_TIMEOUT = 5.0


class ConversationTurn(TypedDict):
    """One turn sent to the backend."""

    role: str
    content: str


class SuggestionBackend(Protocol):
    """Anything that can turn conversation turns into generated text."""

    async def send_message(
        self,
        turns: Sequence[ConversationTurn],
        *,
        model: str,
        max_output_tokens: int,
        temperature: float,
        system_instruction: str,
    ) -> str:
        ...


def get_timeout(model: str, override_ms: Optional[int] = None) -> float:
    """
    Get timeout for a specific model in seconds.
    A configured override (COMPLETION_TIMEOUT_MS) replaces all model-specific timeouts.
    """
    if override_ms:
        return override_ms / 1000  # Convert ms to seconds
    return MODEL_TIMEOUTS.get(model, DEFAULT_TIMEOUT)


def describe_backend_error(error: BaseException) -> str:
    """Turn a backend failure into a message suitable for the host UI."""
    if isinstance(error, TimeoutError):
        return "Suggestion request timed out"
    if isinstance(error, CLINotFoundError):
        return "Claude Code CLI not found. Please install it with: npm install -g @anthropic-ai/claude-code"
    if isinstance(error, CLIConnectionError):
        return f"Failed to connect to Claude Code CLI: {error}"
    if isinstance(error, ProcessError):
        exit_code = getattr(error, "exit_code", "unknown")
        return f"Claude Code CLI process failed (exit code: {exit_code})"
    if isinstance(error, CLIJSONDecodeError):
        return f"Failed to parse Claude Code response: {error}"
    if isinstance(error, ClaudeSDKError):
        return f"Claude SDK error: {error}"
    return str(error) if str(error) else "Unknown error"


class ClaudeBackend:
    """Backend that queries Claude through the Agent SDK."""

    def __init__(self, timeout_override_ms: Optional[int] = None):
        if timeout_override_ms is None:
            timeout_override_ms = settings.completion_timeout_ms
        self._timeout_override_ms = timeout_override_ms

    async def send_message(
        self,
        turns: Sequence[ConversationTurn],
        *,
        model: str,
        max_output_tokens: int,
        temperature: float,
        system_instruction: str,
    ) -> str:
        """
        Query Claude using the Agent SDK.

        Args:
            turns: Conversation turns; their contents form the prompt
            model: The model to use ("haiku", "sonnet", or "opus")
            max_output_tokens: Output bound (not supported by the SDK, logged only)
            temperature: Sampling temperature (not supported by the SDK, logged only)
            system_instruction: System instructions for suggestion behavior

        Returns:
            The generated text

        Raises:
            TimeoutError: If the request times out
            CLINotFoundError: If Claude Code CLI is not installed
            CLIConnectionError: If connection to CLI fails
            ProcessError: If CLI process fails (includes exit_code attribute)
            CLIJSONDecodeError: If response parsing fails
            ClaudeSDKError: Base error for other SDK errors
        """
        log.debug(
            "Sampling parameters ignored (not supported by SDK)",
            {"maxOutputTokens": max_output_tokens, "temperature": temperature},
        )

        options = ClaudeAgentOptions(
            system_prompt=system_instruction,
            model=model,
            max_turns=1,           # Single turn, no back-and-forth
            allowed_tools=[],      # No tools needed for suggestions
        )

        prompt = "\n\n".join(turn["content"] for turn in turns)
        timeout = get_timeout(model, self._timeout_override_ms)

        generated_text = ""
        try:
            async with asyncio.timeout(timeout):
                async for message in query(prompt=prompt, options=options):
                    if isinstance(message, AssistantMessage):
                        for block in message.content:
                            if isinstance(block, TextBlock):
                                generated_text += block.text
        except asyncio.TimeoutError:
            raise TimeoutError(f"Request timed out after {timeout}s")

        return generated_text
