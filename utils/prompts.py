"""Prompt loading utilities."""

from pathlib import Path
from functools import lru_cache

# Prompt templates ship inside the utils package
PROMPTS_DIR = Path(__file__).parent / "templates"


@lru_cache(maxsize=10)
def load_prompt(name: str) -> str:
    """
    Load a prompt template from the prompts directory.

    Args:
        name: Name of the prompt file (without .md extension)

    Returns:
        The prompt template as a string
    """
    prompt_path = PROMPTS_DIR / f"{name}.md"
    return prompt_path.read_text(encoding="utf-8")


def get_system_prompt() -> str:
    """Get the system instruction for suggestion generation."""
    return load_prompt("system").strip()


def get_user_prompt(context: str, current_input: str = "") -> str:
    """
    Get the user prompt for suggestion generation.

    Args:
        context: Recent conversation, one message per line
        current_input: What the user has typed so far

    Returns:
        A "predict the full input" prompt when the user has typed something,
        otherwise a "predict the next input" prompt
    """
    if current_input.strip():
        template = load_prompt("predict_partial")
        return template.format(context=context, current_input=current_input).strip()

    template = load_prompt("predict_next")
    return template.format(context=context).strip()
