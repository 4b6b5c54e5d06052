"""
Domain types shared by the evaluator, session, engine and analytics.

Design:
- Question: read-only catalog item (mcq or short-answer)
- Submission / Evaluation: one answer check and its feedback
- AttemptRecord: immutable log entry for one answered question
- TopicMastery: bounded scalar score + attempt counter per topic
- LearnerRecord: a student's mastery mapping and ordered attempt history
- SessionResult: the tally submitted once at the end of a quiz session

Wire payloads use camelCase keys; attributes use snake_case.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from quizmastery.core.errors import (
    InvalidQuestion,
    InvalidSessionResult,
    MasteryDataCorrupted,
)
from quizmastery.core.mastery import normalize_attempts, normalize_score


class QuestionType(str, Enum):
    """Question types the evaluator can grade."""

    MULTIPLE_CHOICE = "mcq"
    SHORT_ANSWER = "short-answer"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class QuestionOption:
    id: str
    text: str


@dataclass(frozen=True)
class Question:
    """
    A catalog question.

    Multiple-choice questions carry options and a correct option id.
    Short-answer questions carry one or more accepted answers, compared
    after whitespace and case normalization.
    """

    id: str
    question_type: QuestionType
    topic: str
    text: str
    difficulty: Difficulty = Difficulty.MEDIUM
    options: tuple[QuestionOption, ...] = ()
    correct_option_id: str | None = None
    accepted_answers: tuple[str, ...] = ()
    explanation: str = ""

    def option(self, option_id: str) -> QuestionOption | None:
        """Look up an option by id."""
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None

    def validate(self) -> None:
        """Raise InvalidQuestion if the content does not match the declared type."""
        if not self.id:
            raise InvalidQuestion("Question id is required")
        if not self.topic:
            raise InvalidQuestion(f"Question {self.id} has no topic")

        if self.question_type is QuestionType.MULTIPLE_CHOICE:
            if len(self.options) < 2:
                raise InvalidQuestion(f"Question {self.id} needs at least two options")
            ids = [opt.id for opt in self.options]
            if len(set(ids)) != len(ids):
                raise InvalidQuestion(f"Question {self.id} has duplicate option ids")
            if self.correct_option_id not in ids:
                raise InvalidQuestion(
                    f"Question {self.id} correct option {self.correct_option_id!r} is not an option"
                )
        else:
            if not any(a.strip() for a in self.accepted_answers):
                raise InvalidQuestion(f"Question {self.id} has no accepted answers")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        """Build and validate a question from its JSON form."""
        try:
            question_type = QuestionType(data["type"])
            difficulty = Difficulty(data.get("difficulty", Difficulty.MEDIUM.value))
            options = tuple(
                QuestionOption(id=str(opt["id"]), text=str(opt["text"]))
                for opt in data.get("options") or []
            )
            correct = data.get("correctOptionId")
            question = cls(
                id=str(data["id"]),
                question_type=question_type,
                topic=str(data["topic"]),
                text=str(data.get("text", "")),
                difficulty=difficulty,
                options=options,
                correct_option_id=str(correct) if correct is not None else None,
                accepted_answers=tuple(str(a) for a in data.get("acceptedAnswers") or []),
                explanation=str(data.get("explanation", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidQuestion(f"Malformed question {data.get('id', '?')!r}: {e}") from e

        question.validate()
        return question

    def to_dict(self, include_answers: bool = False) -> dict[str, Any]:
        """
        JSON form of the question.

        Answer keys and explanation are only included when include_answers is set,
        so quiz start payloads never leak them.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.question_type.value,
            "topic": self.topic,
            "difficulty": self.difficulty.value,
            "text": self.text,
            "options": [{"id": o.id, "text": o.text} for o in self.options],
        }
        if include_answers:
            data["correctOptionId"] = self.correct_option_id
            data["acceptedAnswers"] = list(self.accepted_answers)
            data["explanation"] = self.explanation
        return data


@dataclass(frozen=True)
class Submission:
    """A student's answer to one question. Exactly one field is set."""

    selected_option_id: str | None = None
    answer_text: str | None = None

    def is_blank(self) -> bool:
        if self.selected_option_id is not None:
            return self.selected_option_id == ""
        return self.answer_text is None or self.answer_text.strip() == ""


@dataclass(frozen=True)
class Evaluation:
    """Feedback for one checked answer."""

    correct: bool
    correct_answer: str
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "isCorrect": self.correct,
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class AttemptRecord:
    """One answered question. Immutable once created."""

    question_id: str
    is_correct: bool
    time_taken: float
    topic: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "question": self.question_id,
            "isCorrect": self.is_correct,
            "timeTaken": self.time_taken,
        }
        if self.topic is not None:
            data["topic"] = self.topic
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AttemptRecord:
        try:
            question_id = data["question"]
            is_correct = data["isCorrect"]
            time_taken = data.get("timeTaken", 0)
        except (KeyError, TypeError) as e:
            raise InvalidSessionResult(f"Malformed attempt record: {e}") from e

        if not isinstance(question_id, str) or not question_id:
            raise InvalidSessionResult("Attempt record question must be a non-empty id")
        if not isinstance(is_correct, bool):
            raise InvalidSessionResult("Attempt record isCorrect must be a boolean")
        if isinstance(time_taken, bool) or not isinstance(time_taken, (int, float)):
            raise InvalidSessionResult("Attempt record timeTaken must be a number")
        if not math.isfinite(time_taken) or time_taken < 0:
            raise InvalidSessionResult("Attempt record timeTaken must be a non-negative number")

        return cls(
            question_id=question_id,
            is_correct=is_correct,
            time_taken=float(time_taken),
            topic=data.get("topic"),
        )


@dataclass(frozen=True)
class TopicMastery:
    """
    Mastery state for one (student, topic) pair.

    score is always within [0, 1]; total_attempts never decreases.
    """

    topic: str
    score: float = 0.0
    total_attempts: int = 0

    @property
    def attempted(self) -> bool:
        return self.total_attempts > 0

    @classmethod
    def from_raw(cls, topic: str, score: Any, total_attempts: Any) -> TopicMastery:
        """Normalize stored or transported values, rejecting non-numeric data."""
        try:
            return cls(
                topic=topic,
                score=normalize_score(score),
                total_attempts=normalize_attempts(total_attempts),
            )
        except ValueError as e:
            raise MasteryDataCorrupted(f"Mastery for topic {topic!r} is corrupt: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "totalAttempts": self.total_attempts}


@dataclass
class LearnerRecord:
    """
    A student's progress: one TopicMastery per topic and the ordered
    attempt history. The unit of serialization for all progress writes.
    """

    student_id: str
    mastery: dict[str, TopicMastery] = field(default_factory=dict)
    history: list[AttemptRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        for key, value in self.mastery.items():
            if value.topic != key:
                raise MasteryDataCorrupted(
                    f"Mastery entry keyed {key!r} belongs to topic {value.topic!r}"
                )

    def mastery_for(self, topic: str) -> TopicMastery:
        """Existing mastery for a topic, or the zero record for a new one."""
        return self.mastery.get(topic) or TopicMastery(topic=topic)

    def recent_activity(self, limit: int) -> list[AttemptRecord]:
        """Last `limit` attempts, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.history[-limit:]))


@dataclass(frozen=True)
class StudentProfile:
    """Display details for a student, owned by the external account service."""

    id: str
    name: str = ""
    email: str | None = None


@dataclass(frozen=True)
class SessionResult:
    """Tally of one completed quiz session."""

    topic: str
    correct_count: int
    total_questions: int
    attempts: tuple[AttemptRecord, ...] = ()

    @property
    def accuracy(self) -> float:
        return self.correct_count / self.total_questions

    def to_payload(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "correctCount": self.correct_count,
            "totalQuestions": self.total_questions,
            "attemptHistory": [a.to_dict() for a in self.attempts],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SessionResult:
        """Parse a submit body. Accepts the legacy fullAttemptHistory key."""
        topic = payload.get("topic")
        correct_count = payload.get("correctCount")
        total_questions = payload.get("totalQuestions")
        history = payload.get("attemptHistory")
        if history is None:
            history = payload.get("fullAttemptHistory", [])

        if not isinstance(topic, str) or not topic.strip():
            raise InvalidSessionResult("topic must be a non-empty string")
        for name, value in (("correctCount", correct_count), ("totalQuestions", total_questions)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidSessionResult(f"{name} must be an integer")
        if not isinstance(history, list):
            raise InvalidSessionResult("attemptHistory must be a list")

        return cls(
            topic=topic,
            correct_count=correct_count,
            total_questions=total_questions,
            attempts=tuple(AttemptRecord.from_dict(item) for item in history),
        )
