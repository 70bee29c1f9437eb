"""Plain-text helpers for conversation messages."""

from typing import Any, Sequence, Union

from models.message import ConversationMessage


def extract_text(content: Union[str, list[dict[str, Any]], None]) -> str:
    """
    Extract plain text from message content.

    Args:
        content: A string, a list of content blocks, or None

    Returns:
        The text of all text blocks joined by newlines
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content

    parts = []
    for block in content:
        if block.get("type", "text") == "text" and isinstance(block.get("text"), str):
            parts.append(block["text"])
    return "\n".join(parts)


def get_conversation_context(
    messages: Sequence[ConversationMessage],
    max_messages: int = 4,
) -> list[str]:
    """
    Reduce the conversation to its most recent messages as text lines.

    Messages without any text are skipped.

    Returns:
        One "role: text" entry per kept message, oldest first
    """
    context = []
    for message in messages[-max_messages:]:
        text = extract_text(message.content).strip()
        if text:
            context.append(f"{message.role}: {text}")
    return context
