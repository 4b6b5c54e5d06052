"""
Question Catalog.

Read-only source of questions. The order returned for a topic is the quiz
order; nothing here shuffles or selects.

Implementations:
- InMemoryQuestionCatalog: questions loaded from JSON (CLI, tests)
- SqlQuestionCatalog: questions table via SQLAlchemy
"""

from __future__ import annotations

import json
from collections.abc import Callable, Generator, Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from quizmastery.core.errors import InvalidQuestion, NotFound, StoreUnavailable
from quizmastery.core.models import Question
from quizmastery.db.database import session_scope
from quizmastery.db.models import QuestionRow


class QuestionCatalog(Protocol):
    """Catalog contract consumed by the evaluator and quiz routes."""

    def get_question(self, question_id: str) -> Question:
        """Return the question or raise NotFound."""
        ...

    def list_questions_for_topic(self, topic: str) -> list[Question]:
        """Questions for a topic in quiz order (may be empty)."""
        ...

    def topics(self) -> list[str]:
        """Distinct topics in first-seen order."""
        ...


def load_questions(path: Path) -> list[Question]:
    """Load and validate a JSON array of questions."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise InvalidQuestion(f"{path} must contain a JSON array of questions")
    return [Question.from_dict(item) for item in data]


class InMemoryQuestionCatalog:
    """Catalog held in memory, keyed by id, preserving insertion order."""

    def __init__(self, questions: Iterable[Question] = ()):
        self._questions: dict[str, Question] = {}
        for question in questions:
            self.add(question)

    @classmethod
    def from_file(cls, path: Path) -> InMemoryQuestionCatalog:
        return cls(load_questions(path))

    def add(self, question: Question) -> None:
        question.validate()
        if question.id in self._questions:
            raise InvalidQuestion(f"Duplicate question id {question.id}")
        self._questions[question.id] = question

    def get_question(self, question_id: str) -> Question:
        try:
            return self._questions[question_id]
        except KeyError:
            raise NotFound(f"Question {question_id} not found") from None

    def list_questions_for_topic(self, topic: str) -> list[Question]:
        return [q for q in self._questions.values() if q.topic == topic]

    def topics(self) -> list[str]:
        return list(dict.fromkeys(q.topic for q in self._questions.values()))

    def __len__(self) -> int:
        return len(self._questions)


def _row_to_question(row: QuestionRow) -> Question:
    return Question.from_dict(
        {
            "id": row.id,
            "type": row.question_type,
            "topic": row.topic,
            "difficulty": row.difficulty,
            "text": row.text,
            "options": row.options or [],
            "correctOptionId": row.correct_option_id,
            "acceptedAnswers": row.accepted_answers or [],
            "explanation": row.explanation or "",
        }
    )


class SqlQuestionCatalog:
    """Catalog backed by the questions table."""

    def __init__(self, session_factory: Callable[[], Session] | None = None):
        self.session_factory = session_factory

    @contextmanager
    def _reading(self) -> Generator[Session, None, None]:
        try:
            with session_scope(self.session_factory) as session:
                yield session
        except DBAPIError as e:
            logger.error(f"Question catalog read failed: {e}")
            raise StoreUnavailable("Questions are temporarily unavailable; please try again") from e

    def get_question(self, question_id: str) -> Question:
        with self._reading() as session:
            row = session.get(QuestionRow, question_id)
            if row is None:
                raise NotFound(f"Question {question_id} not found")
            return _row_to_question(row)

    def list_questions_for_topic(self, topic: str) -> list[Question]:
        with self._reading() as session:
            rows = session.scalars(
                select(QuestionRow)
                .where(QuestionRow.topic == topic)
                .order_by(QuestionRow.position, QuestionRow.id)
            ).all()
            return [_row_to_question(row) for row in rows]

    def topics(self) -> list[str]:
        with self._reading() as session:
            rows = session.execute(
                select(QuestionRow.topic, QuestionRow.position).order_by(QuestionRow.position)
            ).all()
            return list(dict.fromkeys(topic for topic, _ in rows))

    def add_questions(self, questions: Iterable[Question]) -> int:
        """Insert or replace questions, appending them to the catalog order."""
        count = 0
        with session_scope(self.session_factory) as session:
            next_position = session.query(QuestionRow).count()
            for question in questions:
                data: dict[str, Any] = question.to_dict(include_answers=True)
                existing = session.get(QuestionRow, question.id)
                row = existing or QuestionRow(id=question.id, position=next_position)
                if existing is None:
                    next_position += 1
                row.question_type = data["type"]
                row.topic = data["topic"]
                row.difficulty = data["difficulty"]
                row.text = data["text"]
                row.options = data["options"]
                row.correct_option_id = data["correctOptionId"]
                row.accepted_answers = data["acceptedAnswers"]
                row.explanation = data["explanation"]
                session.add(row)
                count += 1
        logger.info(f"Upserted {count} question(s) into the catalog")
        return count
