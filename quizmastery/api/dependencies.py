"""
FastAPI dependencies.

Store, catalog and engine are process-wide singletons so that the store's
per-student locks are shared by every request.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from quizmastery.db.store import LearnerStore
from quizmastery.quiz.catalog import QuestionCatalog, SqlQuestionCatalog
from quizmastery.quiz.evaluator import AttemptEvaluator
from quizmastery.study.mastery_engine import MasteryUpdateEngine


@lru_cache(maxsize=1)
def get_store() -> LearnerStore:
    return LearnerStore()


@lru_cache(maxsize=1)
def get_catalog() -> QuestionCatalog:
    return SqlQuestionCatalog()


def get_evaluator(catalog: QuestionCatalog = Depends(get_catalog)) -> AttemptEvaluator:
    return AttemptEvaluator(catalog)


def get_mastery_engine(store: LearnerStore = Depends(get_store)) -> MasteryUpdateEngine:
    return MasteryUpdateEngine(store)


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Student id asserted by the upstream auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authorized")
    return x_user_id


STAFF_ROLES = frozenset({"instructor", "admin"})


def require_staff(
    user_id: str = Depends(get_current_user_id),
    store: LearnerStore = Depends(get_store),
) -> str:
    """Cohort views are limited to instructors and admins."""
    if store.get_role(user_id) not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="Instructor or admin role required")
    return user_id
