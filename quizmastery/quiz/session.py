"""
Quiz Session State Machine.

One student's run through the ordered questions of a topic. Held by the
caller (CLI loop, client, or a single request); nothing here is stored
server-side.

States:
    IDLE      awaiting an answer for the current question (timer running)
    CHECKING  evaluator call in flight (timer frozen)
    ANSWERED  feedback available for the current question
    COMPLETE  final feedback acknowledged and the session submitted once

    IDLE -> CHECKING -> ANSWERED -> IDLE (next question)
                     `-> IDLE (evaluator failed, nothing recorded)
    ANSWERED (last question) -> COMPLETE via finish()
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from enum import Enum

from loguru import logger

from quizmastery.core.errors import SessionStateError, SubmissionRejected
from quizmastery.core.models import (
    AttemptRecord,
    Evaluation,
    Question,
    SessionResult,
    Submission,
    TopicMastery,
)
from quizmastery.quiz.evaluator import evaluate
from quizmastery.quiz.handlers import get_handler

Grader = Callable[[Question, Submission], Evaluation]
Submitter = Callable[[SessionResult], TopicMastery]


class SessionState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    ANSWERED = "answered"
    COMPLETE = "complete"


class QuizSession:
    """
    Tracks per-question outcomes and elapsed time for one quiz run.

    The completed tally is handed to a submitter exactly once; a failed
    submission leaves the session ANSWERED so it can be retried.
    """

    def __init__(
        self,
        topic: str,
        questions: Sequence[Question],
        clock: Callable[[], float] = time.monotonic,
    ):
        if not questions:
            raise SessionStateError(f"No questions found for the topic {topic!r}")
        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise SessionStateError("A quiz session cannot repeat a question")

        self.topic = topic
        self.questions = list(questions)
        self.clock = clock

        self.state = SessionState.IDLE
        self.index = 0
        self.correct_count = 0
        self.attempts: list[AttemptRecord] = []
        self.feedback: Evaluation | None = None
        self.pending_submission: Submission | None = None
        self.new_mastery: TopicMastery | None = None

        self._started_at = clock()
        self._frozen_elapsed: float | None = None
        self._submitting = False

    # ========================================
    # Read-only views
    # ========================================

    @property
    def current_question(self) -> Question:
        return self.questions[self.index]

    @property
    def is_last_question(self) -> bool:
        return self.index == len(self.questions) - 1

    @property
    def elapsed_seconds(self) -> float:
        """Time on the current question; frozen once it leaves IDLE."""
        if self._frozen_elapsed is not None:
            return self._frozen_elapsed
        return max(self.clock() - self._started_at, 0.0)

    def result(self) -> SessionResult:
        """In-session tally so far."""
        return SessionResult(
            topic=self.topic,
            correct_count=self.correct_count,
            total_questions=len(self.questions),
            attempts=tuple(self.attempts),
        )

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(f"Session is {self.state.value}; expected {allowed}")

    # ========================================
    # Transitions
    # ========================================

    def begin_check(self, submission: Submission) -> None:
        """
        IDLE -> CHECKING.

        Raises:
            SubmissionRejected: Blank answer or wrong shape for the question type;
                the session is left unchanged
        """
        self._require(SessionState.IDLE)
        question = self.current_question
        handler = get_handler(question.question_type)
        if handler is None or submission.is_blank() or not handler.accepts(question, submission):
            raise SubmissionRejected(
                f"Answer does not fit {question.question_type.value} question {question.id}"
            )

        self._frozen_elapsed = self.elapsed_seconds
        self.pending_submission = submission
        self.state = SessionState.CHECKING

    def record_result(self, evaluation: Evaluation) -> AttemptRecord:
        """CHECKING -> ANSWERED, recording one AttemptRecord whatever the outcome."""
        self._require(SessionState.CHECKING)
        record = AttemptRecord(
            question_id=self.current_question.id,
            is_correct=evaluation.correct,
            time_taken=self.elapsed_seconds,
            topic=self.topic,
        )
        self.attempts.append(record)
        if evaluation.correct:
            self.correct_count += 1
        self.feedback = evaluation
        self.state = SessionState.ANSWERED
        return record

    def abort_check(self) -> None:
        """CHECKING -> IDLE after a failed check; the timer resumes, the answer is kept."""
        self._require(SessionState.CHECKING)
        frozen = self._frozen_elapsed or 0.0
        self._started_at = self.clock() - frozen
        self._frozen_elapsed = None
        self.state = SessionState.IDLE

    def check(self, submission: Submission, grade: Grader = evaluate) -> Evaluation:
        """
        Check the current question's answer.

        Args:
            submission: Student's answer
            grade: Evaluator call (defaults to local evaluation)

        Returns:
            Evaluation feedback (also stored on `feedback`)
        """
        self.begin_check(submission)
        try:
            evaluation = grade(self.current_question, submission)
        except Exception:  # Intentionally broad - restore IDLE before re-raising
            self.abort_check()
            raise
        self.record_result(evaluation)
        return evaluation

    def next_question(self) -> Question:
        """ANSWERED -> IDLE on the following question, resetting the timer."""
        self._require(SessionState.ANSWERED)
        if self.is_last_question:
            raise SessionStateError("Last question answered; finish the session instead")

        self.index += 1
        self.feedback = None
        self.pending_submission = None
        self._frozen_elapsed = None
        self._started_at = self.clock()
        self.state = SessionState.IDLE
        return self.current_question

    def finish(self, submit: Submitter) -> TopicMastery:
        """
        Acknowledge the final feedback and submit the session once.

        Returns the cached mastery on repeat calls without submitting again.
        If `submit` raises, the session stays ANSWERED and may be retried.
        """
        if self.state is SessionState.COMPLETE and self.new_mastery is not None:
            return self.new_mastery
        self._require(SessionState.ANSWERED)
        if not self.is_last_question:
            raise SessionStateError("Questions remain; move to the next question instead")
        if self._submitting:
            raise SessionStateError("Session submission already in progress")

        self._submitting = True
        try:
            mastery = submit(self.result())
        except Exception as e:  # Intentionally broad - stay ANSWERED so the caller can retry
            logger.warning(f"Session submission for {self.topic!r} failed: {e}")
            raise
        finally:
            self._submitting = False

        self.new_mastery = mastery
        self.state = SessionState.COMPLETE
        return mastery

    def acknowledge(self, submit: Submitter) -> Question | TopicMastery:
        """Acknowledge feedback: advance, or finish after the last question."""
        if self.is_last_question:
            return self.finish(submit)
        return self.next_question()
