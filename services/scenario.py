"""Conversation scenario detection."""

from enum import Enum
from typing import Optional, Sequence

from models.message import ConversationMessage
from utils.text import extract_text


class Scenario(str, Enum):
    """What just happened in the conversation."""

    AFTER_ERROR = "after_error"
    AFTER_COMPLETION = "after_completion"
    AFTER_CODE_CHANGE = "after_code_change"
    AFTER_QUESTION = "after_question"


ERROR_KEYWORDS = ("error", "错误", "failed", "失败")
COMPLETION_KEYWORDS = ("完成", "done", "已", "成功")
CODE_CHANGE_KEYWORDS = ("修改", "更新", "edited", "modified")
QUESTION_KEYWORDS = ("是否", "要不要")
QUESTION_ENDINGS = ("?", "？")


def detect_scenario(messages: Sequence[ConversationMessage]) -> Optional[Scenario]:
    """
    Classify the conversation by its last message.

    Checks errors first, then completions, code changes and questions.

    Returns:
        The first matching scenario, or None for an empty history or no match
    """
    if not messages:
        return None

    content = extract_text(messages[-1].content).lower()

    if any(keyword in content for keyword in ERROR_KEYWORDS):
        return Scenario.AFTER_ERROR

    if any(keyword in content for keyword in COMPLETION_KEYWORDS):
        return Scenario.AFTER_COMPLETION

    if any(keyword in content for keyword in CODE_CHANGE_KEYWORDS):
        return Scenario.AFTER_CODE_CHANGE

    if content.endswith(QUESTION_ENDINGS) or any(k in content for k in QUESTION_KEYWORDS):
        return Scenario.AFTER_QUESTION

    return None
