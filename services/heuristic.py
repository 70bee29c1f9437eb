"""Template-based suggestions for common conversation scenarios."""

import random
from typing import Callable, Optional, Sequence

from models.suggestion import Suggestion
from services.scenario import Scenario, detect_scenario
from services.sources import SuggestionRequest, SuggestionSource

# Candidate phrasings per scenario
TEMPLATE_SUGGESTIONS: dict[Scenario, list[str]] = {
    Scenario.AFTER_CODE_CHANGE: [
        "Run the tests to verify the changes",
        "Commit these changes",
        "Check if anything else needs to be updated",
    ],
    Scenario.AFTER_ERROR: [
        "Fix this error",
        "Explain what caused this error",
        "Show me the relevant logs",
    ],
    Scenario.AFTER_COMPLETION: [
        "Is there anything else left to do?",
        "Summarize the changes you just made",
        "Run the full test suite",
    ],
    Scenario.AFTER_QUESTION: [
        "Yes",
        "No",
        "Please explain in more detail",
    ],
}

Chooser = Callable[[Sequence[str]], str]


def heuristic_suggestion(
    scenario: Scenario,
    choose: Chooser = random.choice,
) -> Optional[Suggestion]:
    """
    Pick a template suggestion for a scenario.

    Args:
        scenario: The detected conversation scenario
        choose: Selection policy over the candidate pool (uniform random by default)

    Returns:
        A medium-confidence heuristic suggestion, or None if the pool is empty
    """
    templates = TEMPLATE_SUGGESTIONS.get(scenario)
    if not templates:
        return None

    return Suggestion(
        text=choose(templates),
        confidence="medium",
        source="heuristic",
    )


class HeuristicSource(SuggestionSource):
    """Scenario templates, used only when the user has not typed anything."""

    name = "heuristic"

    def __init__(self, choose: Chooser = random.choice):
        self._choose = choose

    def applies(self, request: SuggestionRequest) -> bool:
        return not request.has_input

    async def produce(self, request: SuggestionRequest) -> Optional[Suggestion]:
        scenario = detect_scenario(request.messages)
        if scenario is None:
            return None
        return heuristic_suggestion(scenario, self._choose)
