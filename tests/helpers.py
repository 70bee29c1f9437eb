"""Fake backends and message builders for tests."""

import asyncio
from typing import Optional

from models.message import ConversationMessage


def messages(*texts: str) -> list[ConversationMessage]:
    """Build an alternating user/assistant history."""
    roles = ("user", "assistant")
    return [ConversationMessage(role=roles[i % 2], content=text) for i, text in enumerate(texts)]


class FakeBackend:
    """Backend returning canned text and recording every call."""

    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    async def send_message(self, turns, *, model, max_output_tokens, temperature, system_instruction):
        self.calls.append(
            {
                "turns": list(turns),
                "model": model,
                "max_output_tokens": max_output_tokens,
                "temperature": temperature,
                "system_instruction": system_instruction,
            }
        )
        if self.error is not None:
            raise self.error
        return self.text


class GatedBackend:
    """Backend whose calls block until released by the test."""

    def __init__(self, ignore_cancel: bool = False):
        self.ignore_cancel = ignore_cancel
        self.calls: list[dict] = []
        self.gates: list[asyncio.Future] = []
        self.cancelled: list[int] = []

    async def send_message(self, turns, *, model, max_output_tokens, temperature, system_instruction):
        index = len(self.calls)
        self.calls.append({"turns": list(turns), "model": model})
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        try:
            return await asyncio.shield(gate)
        except asyncio.CancelledError:
            self.cancelled.append(index)
            if not self.ignore_cancel:
                raise
            # Simulate a transport that cannot abort: finish anyway
            return await gate

    def release(self, index: int, text: str = "", error: Optional[Exception] = None) -> None:
        gate = self.gates[index]
        if error is not None:
            gate.set_exception(error)
        else:
            gate.set_result(text)
