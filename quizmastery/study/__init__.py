"""
Study Module.

Provides the mastery update engine that folds completed quiz sessions into
per-topic mastery and the attempt history.
"""

from quizmastery.study.mastery_engine import (
    MasteryUpdateEngine,
    recompute_mastery,
    validate_session,
)

__all__ = [
    "MasteryUpdateEngine",
    "recompute_mastery",
    "validate_session",
]
