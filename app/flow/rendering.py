"""
app/flow/rendering.py

Purpose: Channel-neutral question rendering

- Numbered plain-text body for channels without an inline choice widget
"""

from app.models.question import Question
from utils.constants import PLAIN_TEXT_INSTRUCTION


def format_question_text(question: Question) -> str:
    """
    Example:
        How are you feeling today?

        1. Great
        2. Good

        Please reply with the number of your choice.
    """
    lines = [f"{index}. {option}" for index, option in enumerate(question.options, start=1)]
    return f"{question.text}\n\n" + "\n".join(lines) + f"\n\n{PLAIN_TEXT_INSTRUCTION}"
