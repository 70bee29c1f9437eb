"""Tests for generative suggestions."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from helpers import FakeBackend, GatedBackend, messages
from models.message import ConversationMessage
from services.cancellation import CancellationToken
from services.generative import GenerativeSource, validate_suggestion
from services.sources import SuggestionRequest
from utils.prompts import get_system_prompt

HISTORY = messages("Add a --verbose flag", "Added the flag to cli.py")


def make_source(backend, current_epoch: int = 1) -> GenerativeSource:
    return GenerativeSource(backend, model="haiku", is_current=lambda epoch: epoch == current_epoch)


class TestValidateSuggestion:
    """Tests for the validate_suggestion function."""

    def test_strips_whitespace(self):
        text, reason = validate_suggestion("  Run the tests \n", "")
        assert text == "Run the tests"
        assert reason is None

    def test_rejects_empty(self):
        text, reason = validate_suggestion("   ", "")
        assert text == ""
        assert reason is not None

    def test_rejects_too_short(self):
        text, reason = validate_suggestion("y", "")
        assert text == ""
        assert "too short" in reason

    def test_accepts_two_characters(self):
        text, reason = validate_suggestion("ok", "")
        assert text == "ok"
        assert reason is None

    def test_accepts_at_max_length(self):
        text, reason = validate_suggestion("x" * 100, "")
        assert text == "x" * 100
        assert reason is None

    def test_rejects_too_long(self):
        text, reason = validate_suggestion("x" * 101, "")
        assert text == ""
        assert "too long" in reason

    def test_rejects_noop_suggestion(self):
        text, reason = validate_suggestion(" fix the bug ", "fix the bug")
        assert text == ""
        assert "identical" in reason

    def test_noop_check_is_case_sensitive(self):
        text, reason = validate_suggestion("Fix the bug", "fix the bug")
        assert text == "Fix the bug"
        assert reason is None


@pytest.mark.asyncio
async def test_generates_high_confidence_suggestion():
    """Should wrap valid backend output as a generative suggestion."""
    backend = FakeBackend("Run the tests for the new flag")
    source = make_source(backend)

    suggestion = await source.generate(SuggestionRequest(HISTORY, "", epoch=1))

    assert suggestion.text == "Run the tests for the new flag"
    assert suggestion.confidence == "high"
    assert suggestion.source == "generative"


@pytest.mark.asyncio
async def test_sends_single_bounded_request():
    """Should issue one request with the configured sampling parameters."""
    backend = FakeBackend("Run the tests")
    source = make_source(backend)

    await source.generate(SuggestionRequest(HISTORY, "Run", epoch=1))

    assert len(backend.calls) == 1
    call = backend.calls[0]
    assert call["model"] == "haiku"
    assert call["max_output_tokens"] == 60
    assert call["temperature"] == 0.3
    assert call["system_instruction"] == get_system_prompt()
    assert len(call["turns"]) == 1
    prompt = call["turns"][0]["content"]
    assert '"Run"' in prompt
    assert "assistant: Added the flag to cli.py" in prompt


@pytest.mark.asyncio
async def test_uses_next_input_prompt_without_typed_text():
    """Should ask for the next input when nothing was typed."""
    backend = FakeBackend("Run the tests")
    source = make_source(backend)

    await source.generate(SuggestionRequest(HISTORY, "  ", epoch=1))

    prompt = backend.calls[0]["turns"][0]["content"]
    assert "currently typing" not in prompt
    assert "next input" in prompt


@pytest.mark.asyncio
async def test_limits_context_to_recent_messages():
    """Should only send the four most recent messages."""
    backend = FakeBackend("Run the tests")
    source = make_source(backend)
    history = messages("one", "two", "three", "four", "five", "six")

    await source.generate(SuggestionRequest(history, "", epoch=1))

    prompt = backend.calls[0]["turns"][0]["content"]
    assert "user: one" not in prompt
    assert "assistant: two" not in prompt
    assert "user: three" in prompt
    assert "assistant: six" in prompt


@pytest.mark.asyncio
async def test_blank_context_skips_backend():
    """Should return None without calling the backend for a blank context."""
    backend = FakeBackend("Run the tests")
    source = make_source(backend)
    history = [ConversationMessage(role="assistant", content=[{"type": "tool_use", "name": "bash"}])]

    assert await source.generate(SuggestionRequest(history, "", epoch=1)) is None
    assert backend.calls == []


@pytest.mark.asyncio
async def test_rejects_noop_output():
    """Should return None when the output repeats the typed input."""
    source = make_source(FakeBackend("fix the bug"))

    assert await source.generate(SuggestionRequest(HISTORY, "fix the bug", epoch=1)) is None


@pytest.mark.asyncio
async def test_stale_epoch_is_discarded():
    """Should drop the result when the epoch changed during the call."""
    source = make_source(FakeBackend("Run the tests"), current_epoch=2)

    assert await source.generate(SuggestionRequest(HISTORY, "", epoch=1)) is None


@pytest.mark.asyncio
async def test_cancellation_resolves_to_none():
    """Should resolve to None, not raise, when the token is cancelled."""
    backend = GatedBackend()
    source = make_source(backend)
    token = CancellationToken()

    task = asyncio.ensure_future(source.generate(SuggestionRequest(HISTORY, "", epoch=1, token=token)))
    while not backend.calls:
        await asyncio.sleep(0)
    token.cancel()

    assert await task is None
    assert backend.cancelled == [0]


@pytest.mark.asyncio
async def test_already_cancelled_token_skips_backend():
    """A token cancelled up front should prevent the call from being built at all."""
    backend = FakeBackend("Run the tests")
    backend.send_message = AsyncMock(return_value="Run the tests")
    source = make_source(backend)
    token = CancellationToken()
    token.cancel()

    assert await source.generate(SuggestionRequest(HISTORY, "", epoch=1, token=token)) is None
    assert backend.send_message.call_count == 0


@pytest.mark.asyncio
async def test_backend_errors_propagate():
    """Should let transport failures reach the caller."""
    source = make_source(FakeBackend(error=ConnectionError("connection reset")))

    with pytest.raises(ConnectionError):
        await source.generate(SuggestionRequest(HISTORY, "", epoch=1))
