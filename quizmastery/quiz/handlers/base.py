"""
Base protocol for question handlers.
"""

from typing import Protocol

from quizmastery.core.models import Evaluation, Question, Submission


def normalize_answer(text: str) -> str:
    """Trim, collapse inner whitespace and case-fold a free-text answer."""
    return " ".join(text.split()).casefold()


class QuestionHandler(Protocol):
    """Protocol for question type handlers."""

    def accepts(self, question: Question, submission: Submission) -> bool:
        """True if the submission is non-blank and has this type's shape."""
        ...

    def validate(self, question: Question, submission: Submission) -> None:
        """Raise InvalidSubmission if the submission cannot be graded."""
        ...

    def check(self, question: Question, submission: Submission) -> Evaluation:
        """Grade a validated submission."""
        ...
