"""Common interface of the suggestion sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from models.message import ConversationMessage
from models.suggestion import Suggestion
from services.cancellation import CancellationToken


@dataclass(frozen=True)
class SuggestionRequest:
    """Everything a source needs to produce a candidate for one evaluation."""

    messages: Sequence[ConversationMessage]
    current_input: str
    epoch: int
    token: CancellationToken = field(default_factory=CancellationToken)

    @property
    def has_input(self) -> bool:
        return bool(self.current_input.strip())


class SuggestionSource(ABC):
    """Produces a candidate suggestion for a request, or None."""

    name: str = "source"

    @abstractmethod
    def applies(self, request: SuggestionRequest) -> bool:
        """Whether this source should be consulted for the request."""

    @abstractmethod
    async def produce(self, request: SuggestionRequest) -> Optional[Suggestion]:
        """Produce a suggestion, or None when the source has nothing to offer."""
