"""
Question catalog table.

Answer keys live beside the question content; the quiz start route strips
them before anything reaches a client.
"""
from __future__ import annotations

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class QuestionRow(Base):
    """
    Catalog question.

    options: [{"id": "a", "text": "..."}, ...] for mcq, empty for short-answer
    accepted_answers: ["paris", ...] for short-answer, empty for mcq
    """

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_type: Mapped[str] = mapped_column(String(32), nullable=False)
    topic: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    difficulty: Mapped[str] = mapped_column(String(16), default="medium")
    text: Mapped[str] = mapped_column(Text, default="")
    options: Mapped[list] = mapped_column(JSON, default=list)
    correct_option_id: Mapped[str | None] = mapped_column(String(64))
    accepted_answers: Mapped[list] = mapped_column(JSON, default=list)
    explanation: Mapped[str] = mapped_column(Text, default="")

    # Catalog order; the quiz order for a topic
    position: Mapped[int] = mapped_column(Integer, default=0, index=True)

    def __repr__(self) -> str:
        return f"<QuestionRow(id={self.id}, type={self.question_type}, topic={self.topic})>"
