"""
Core Module - Shared domain models and errors.

Components:
- models: Question, AttemptRecord, TopicMastery, LearnerRecord, SessionResult
- mastery: MasteryLevel banding and numeric normalization
- errors: Error taxonomy shared by every layer
"""

from quizmastery.core.errors import (
    InvalidQuestion,
    InvalidSessionResult,
    InvalidSubmission,
    MasteryDataCorrupted,
    MasteryInvariantViolation,
    NotFound,
    QuizMasteryError,
    SessionStateError,
    StoreUnavailable,
    SubmissionRejected,
)
from quizmastery.core.mastery import MasteryLevel
from quizmastery.core.models import (
    AttemptRecord,
    Difficulty,
    Evaluation,
    LearnerRecord,
    Question,
    QuestionOption,
    QuestionType,
    SessionResult,
    StudentProfile,
    Submission,
    TopicMastery,
)

__all__ = [
    # Models
    "AttemptRecord",
    "Difficulty",
    "Evaluation",
    "LearnerRecord",
    "Question",
    "QuestionOption",
    "QuestionType",
    "SessionResult",
    "StudentProfile",
    "Submission",
    "TopicMastery",
    "MasteryLevel",
    # Errors
    "QuizMasteryError",
    "NotFound",
    "InvalidSubmission",
    "InvalidSessionResult",
    "InvalidQuestion",
    "StoreUnavailable",
    "SubmissionRejected",
    "SessionStateError",
    "MasteryDataCorrupted",
    "MasteryInvariantViolation",
]
