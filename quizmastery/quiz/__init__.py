"""
Quiz Module.

Provides:
- Attempt evaluation per question type
- Question catalog (SQL and in-memory)
- Quiz session state machine
"""

from quizmastery.quiz.catalog import (
    InMemoryQuestionCatalog,
    QuestionCatalog,
    SqlQuestionCatalog,
    load_questions,
)
from quizmastery.quiz.evaluator import AttemptEvaluator, evaluate
from quizmastery.quiz.session import QuizSession, SessionState

__all__ = [
    "AttemptEvaluator",
    "evaluate",
    "QuestionCatalog",
    "InMemoryQuestionCatalog",
    "SqlQuestionCatalog",
    "load_questions",
    "QuizSession",
    "SessionState",
]
