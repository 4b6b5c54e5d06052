"""
Question type handlers for the attempt evaluator.

Each question type has its own module with:
- accepts(): Is the submission non-blank and shaped for this type?
- validate(): Raise InvalidSubmission for a mismatched or unknown answer
- check(): Grade the answer and build feedback
"""

from typing import TYPE_CHECKING

from quizmastery.core.models import QuestionType

if TYPE_CHECKING:
    from .base import QuestionHandler


# Handler registry - populated by @register decorator
HANDLERS: dict[QuestionType, "QuestionHandler"] = {}


def register(question_type: QuestionType):
    """Decorator to register a question handler."""
    def decorator(cls):
        HANDLERS[question_type] = cls()
        return cls
    return decorator


def get_handler(question_type: str | QuestionType) -> "QuestionHandler | None":
    """Get the handler for a question type."""
    if isinstance(question_type, str):
        try:
            question_type = QuestionType(question_type.lower())
        except ValueError:
            return None
    return HANDLERS.get(question_type)


# Import handlers to trigger registration
from . import mcq
from . import short_answer

__all__ = [
    "HANDLERS",
    "get_handler",
    "register",
]
