"""Conversation message model consumed by the suggestion engine."""

from typing import Any, Union

from pydantic import BaseModel, Field


class ConversationMessage(BaseModel):
    """A single message of the conversation history."""

    role: str = Field(..., min_length=1, description="Message author, e.g. user or assistant")
    content: Union[str, list[dict[str, Any]]] = Field(
        default="", description="Plain text or a list of content blocks"
    )
