"""
Error taxonomy for the quiz and mastery engine.

Client errors (NotFound, InvalidSubmission, InvalidSessionResult) are raised
before any state is touched. StoreUnavailable is transient and safe to retry.
MasteryDataCorrupted and MasteryInvariantViolation indicate bugs or schema
corruption and are never caught by the engine.
"""

from __future__ import annotations


class QuizMasteryError(Exception):
    """Base class for all engine errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(QuizMasteryError):
    """Referenced question, topic or student record does not exist."""

    status_code = 404


class InvalidSubmission(QuizMasteryError):
    """Submitted answer does not fit the question it references."""

    status_code = 400


class InvalidSessionResult(QuizMasteryError):
    """Session tally is malformed or internally inconsistent."""

    status_code = 400


class InvalidQuestion(QuizMasteryError):
    """Question content failed validation while loading the catalog."""

    status_code = 400


class StoreUnavailable(QuizMasteryError):
    """Persistence failed transiently; no partial update was applied."""

    status_code = 503


class SubmissionRejected(QuizMasteryError):
    """Blank or mistyped answer refused by the session before checking."""

    status_code = 400


class SessionStateError(QuizMasteryError):
    """Session operation called in a state that does not allow it."""

    status_code = 409


class MasteryDataCorrupted(QuizMasteryError):
    """Stored mastery data is non-numeric or out of range."""


class MasteryInvariantViolation(QuizMasteryError):
    """A computed mastery update would break a record invariant."""
