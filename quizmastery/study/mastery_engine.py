"""
Mastery Update Engine.

Consumes one completed quiz session and the student's prior mastery for the
topic, appends the session's attempts to the history and replaces the topic
mastery with a cumulative, question-weighted running mean:

    new_total = prior.total_attempts + total_questions
    new_score = (prior.score * prior.total_attempts + accuracy * total_questions) / new_total

A topic's first session therefore sets mastery exactly to that session's
accuracy, and a later session moves the score in proportion to its share of
all questions answered on the topic.

The engine does not deduplicate: each call is one session. Exactly-once
submission is the quiz session's job.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import replace

from loguru import logger

from quizmastery.core.errors import InvalidSessionResult, MasteryInvariantViolation
from quizmastery.core.models import AttemptRecord, LearnerRecord, SessionResult, TopicMastery
from quizmastery.db.store import LearnerStore, LearnerUpdate


def validate_session(
    topic: str,
    correct_count: int,
    total_questions: int,
    attempt_records: Sequence[AttemptRecord],
) -> None:
    """
    Reject malformed or inconsistent session tallies.

    Rules:
    - topic is a non-empty string
    - 0 <= correct_count <= total_questions and total_questions > 0
    - no question appears twice in attempt_records
    - when attempt_records are given, there is one per question and the
      number marked correct equals correct_count

    Raises:
        InvalidSessionResult: On any violation
    """
    if not isinstance(topic, str) or not topic.strip():
        raise InvalidSessionResult("topic must be a non-empty string")
    for name, value in (("correctCount", correct_count), ("totalQuestions", total_questions)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidSessionResult(f"{name} must be an integer, got {value!r}")
    if total_questions <= 0:
        raise InvalidSessionResult("totalQuestions must be greater than zero")
    if not 0 <= correct_count <= total_questions:
        raise InvalidSessionResult(
            f"correctCount {correct_count} must be between 0 and totalQuestions {total_questions}"
        )

    seen: set[str] = set()
    for record in attempt_records:
        if record.question_id in seen:
            raise InvalidSessionResult(f"Question {record.question_id} appears twice in one session")
        seen.add(record.question_id)

    if attempt_records:
        if len(attempt_records) != total_questions:
            raise InvalidSessionResult(
                f"{len(attempt_records)} attempt records for {total_questions} questions"
            )
        marked_correct = sum(1 for r in attempt_records if r.is_correct)
        if marked_correct != correct_count:
            raise InvalidSessionResult(
                f"correctCount {correct_count} disagrees with {marked_correct} correct attempt records"
            )


def recompute_mastery(prior: TopicMastery, correct_count: int, total_questions: int) -> TopicMastery:
    """
    Fold one session into a topic's mastery.

    Args:
        prior: Existing mastery (zero record for a new topic)
        correct_count: Questions answered correctly in the session
        total_questions: Questions in the session (> 0)

    Returns:
        New TopicMastery with score clamped to [0, 1]
    """
    accuracy = correct_count / total_questions
    new_total = prior.total_attempts + total_questions
    weighted = prior.score * prior.total_attempts + accuracy * total_questions
    new_score = min(max(weighted / new_total, 0.0), 1.0)

    if new_total <= prior.total_attempts or not math.isfinite(new_score):
        raise MasteryInvariantViolation(
            f"Recompute for {prior.topic!r} produced attempts={new_total} score={new_score}"
        )
    return TopicMastery(topic=prior.topic, score=new_score, total_attempts=new_total)


class MasteryUpdateEngine:
    """
    Applies completed sessions to learner records.

    Each submission validates first, then performs one atomic store write
    that appends the history and replaces the topic mastery together.
    """

    def __init__(self, store: LearnerStore):
        self.store = store

    def submit_session(
        self,
        student_id: str,
        topic: str,
        correct_count: int,
        total_questions: int,
        attempt_records: Sequence[AttemptRecord] = (),
    ) -> TopicMastery:
        """
        Record a completed session and return the new topic mastery.

        Args:
            student_id: Student the session belongs to
            topic: Topic key of the session
            correct_count: Questions answered correctly
            total_questions: Questions in the session
            attempt_records: Per-question records in session order (optional)

        Returns:
            Updated TopicMastery for the topic

        Raises:
            InvalidSessionResult: Tally rejected; nothing was written
            StoreUnavailable: Persistence failed; nothing was written, safe to retry
        """
        try:
            validate_session(topic, correct_count, total_questions, attempt_records)
        except InvalidSessionResult as e:
            logger.warning(f"Rejected session from {student_id} on {topic!r}: {e.message}")
            raise

        appended = [replace(record, topic=topic) for record in attempt_records]

        def mutate(record: LearnerRecord) -> LearnerUpdate:
            new = recompute_mastery(record.mastery_for(topic), correct_count, total_questions)
            return LearnerUpdate(mastery=[new], appended=appended)

        _, change = self.store.apply(student_id, mutate)
        new_mastery = change.mastery[0]

        logger.info(
            f"Session recorded: student={student_id} topic={topic!r} "
            f"correct={correct_count}/{total_questions} "
            f"mastery={new_mastery.score:.3f} attempts={new_mastery.total_attempts}"
        )
        return new_mastery

    def submit_result(self, student_id: str, result: SessionResult) -> TopicMastery:
        """Submit a SessionResult built by a quiz session or parsed from a request."""
        return self.submit_session(
            student_id,
            result.topic,
            result.correct_count,
            result.total_questions,
            result.attempts,
        )
