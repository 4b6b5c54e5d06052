"""
Quiz router.

Endpoints for:
- Starting a topic quiz (questions in catalog order, answer keys stripped)
- Checking one answer (stateless, repeatable)
- Submitting a completed session (one mastery update per call)
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt
from pydantic.alias_generators import to_camel

from quizmastery.api.dependencies import (
    get_catalog,
    get_current_user_id,
    get_evaluator,
    get_mastery_engine,
)
from quizmastery.core.errors import NotFound
from quizmastery.core.models import AttemptRecord, SessionResult, Submission
from quizmastery.quiz.catalog import QuestionCatalog
from quizmastery.quiz.evaluator import AttemptEvaluator
from quizmastery.study.mastery_engine import MasteryUpdateEngine

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class CamelModel(BaseModel):
    """Wire models use camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckAnswerRequest(CamelModel):
    """Request model for checking one answer."""

    question_id: str = Field(..., min_length=1, description="Catalog question id")
    selected_option_id: Optional[str] = Field(None, description="Chosen option (mcq)")
    answer_text: Optional[str] = Field(None, description="Typed answer (short-answer)")


class CheckAnswerResponse(CamelModel):
    """Feedback for one checked answer."""

    is_correct: bool
    correct_answer: str
    explanation: str


class AttemptIn(CamelModel):
    """One per-question record accumulated client-side."""

    question: str = Field(..., min_length=1, description="Question id")
    is_correct: StrictBool
    time_taken: float = Field(0.0, ge=0, allow_inf_nan=False, description="Seconds on the question")


class SubmitSessionRequest(CamelModel):
    """Request model for submitting a completed session."""

    topic: str = Field(..., min_length=1)
    correct_count: StrictInt
    total_questions: StrictInt
    attempt_history: Optional[List[AttemptIn]] = None
    full_attempt_history: Optional[List[AttemptIn]] = Field(
        None, description="Legacy name for attemptHistory"
    )

    def to_result(self) -> SessionResult:
        history = self.attempt_history if self.attempt_history is not None else self.full_attempt_history
        return SessionResult(
            topic=self.topic,
            correct_count=self.correct_count,
            total_questions=self.total_questions,
            attempts=tuple(
                AttemptRecord(
                    question_id=a.question,
                    is_correct=a.is_correct,
                    time_taken=a.time_taken,
                )
                for a in history or []
            ),
        )


class SubmitSessionResponse(CamelModel):
    """New mastery after a submitted session."""

    topic: str
    new_mastery: float
    total_attempts: int
    correct_count: int
    total_questions: int


# ========================================
# Quiz Endpoints
# ========================================


@router.get("/start", summary="Questions for a topic quiz")
def start_quiz(
    topic: str = Query(..., min_length=1, description="Topic key"),
    user_id: str = Depends(get_current_user_id),
    catalog: QuestionCatalog = Depends(get_catalog),
) -> List[Dict[str, Any]]:
    """
    Return the topic's questions in quiz order.

    Correct answers and explanations are never included; they are only
    revealed one question at a time by /check.
    """
    questions = catalog.list_questions_for_topic(topic)
    if not questions:
        raise NotFound(f'No questions found for the topic "{topic}"')
    logger.debug(f"Quiz start for {user_id}: {len(questions)} question(s) on {topic!r}")
    return [q.to_dict() for q in questions]


@router.post("/check", response_model=CheckAnswerResponse, summary="Check one answer")
def check_answer(
    request: CheckAnswerRequest,
    user_id: str = Depends(get_current_user_id),
    evaluator: AttemptEvaluator = Depends(get_evaluator),
) -> CheckAnswerResponse:
    """Grade an answer. Has no side effects; safe to repeat."""
    submission = Submission(
        selected_option_id=request.selected_option_id,
        answer_text=request.answer_text,
    )
    result = evaluator.check(request.question_id, submission)
    return CheckAnswerResponse.model_validate(result.to_dict())


@router.post("/submit", response_model=SubmitSessionResponse, summary="Submit a completed session")
def submit_session(
    request: SubmitSessionRequest,
    user_id: str = Depends(get_current_user_id),
    engine: MasteryUpdateEngine = Depends(get_mastery_engine),
) -> SubmitSessionResponse:
    """
    Fold a completed session into the student's mastery.

    Each call counts as one session. Clients must not resubmit after a
    success; resubmitting after a 503 is safe because nothing was written.
    """
    result = request.to_result()
    mastery = engine.submit_result(user_id, result)
    return SubmitSessionResponse(
        topic=mastery.topic,
        new_mastery=mastery.score,
        total_attempts=mastery.total_attempts,
        correct_count=result.correct_count,
        total_questions=result.total_questions,
    )
