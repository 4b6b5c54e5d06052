"""
Learner progress models.

- User: account row owned by the external auth layer (read for names/roles)
- LearnerRecordRow: one per student; version column backs compare-and-swap writes
- TopicMasteryRow: one per (learner, topic)
- AttemptRow: append-only attempt history ordered by sequence
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class User(Base):
    """Platform user. Roles: student, instructor, admin."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    role: Mapped[str] = mapped_column(String(32), default="student", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"


class LearnerRecordRow(Base):
    """
    A student's progress record.

    All mastery and history writes for a student go through this row; every
    committed write increments version.
    """

    __tablename__ = "learner_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    mastery: Mapped[list[TopicMasteryRow]] = relationship(
        back_populates="learner", cascade="all, delete-orphan", order_by="TopicMasteryRow.id"
    )
    attempts: Mapped[list[AttemptRow]] = relationship(
        back_populates="learner", cascade="all, delete-orphan", order_by="AttemptRow.sequence"
    )

    def __repr__(self) -> str:
        return f"<LearnerRecordRow student={self.student_id} version={self.version}>"


class TopicMasteryRow(Base):
    """Mastery score (0-1) and attempt count for one topic."""

    __tablename__ = "topic_mastery"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[int] = mapped_column(
        ForeignKey("learner_records.id", ondelete="CASCADE"), nullable=False
    )
    topic: Mapped[str] = mapped_column(String(128), nullable=False)
    score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    learner: Mapped[LearnerRecordRow] = relationship(back_populates="mastery")

    __table_args__ = (UniqueConstraint("learner_id", "topic", name="uq_learner_topic"),)

    def __repr__(self) -> str:
        return f"<TopicMasteryRow topic={self.topic} score={self.score} attempts={self.total_attempts}>"


class AttemptRow(Base):
    """One answered question in a student's history."""

    __tablename__ = "attempt_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[int] = mapped_column(
        ForeignKey("learner_records.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    question_id: Mapped[str] = mapped_column(String(64), nullable=False)
    topic: Mapped[str | None] = mapped_column(String(128))
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    time_taken: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    learner: Mapped[LearnerRecordRow] = relationship(back_populates="attempts")

    __table_args__ = (UniqueConstraint("learner_id", "sequence", name="uq_learner_sequence"),)
