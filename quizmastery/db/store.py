"""
Learner Store.

Persists LearnerRecords and provides the one write primitive the mastery
engine needs: an atomic "read current state, compute new state, write it
back" for a single student.

Serialization:
- In-process, writes for the same student take a per-student lock
- Across processes, each write is a compare-and-swap on learner_records.version;
  a lost race rolls back and the whole read-compute-write is retried
- History append and mastery replacement commit in one transaction
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, selectinload

from config import get_settings
from quizmastery.core.errors import MasteryInvariantViolation, StoreUnavailable
from quizmastery.core.models import AttemptRecord, LearnerRecord, StudentProfile, TopicMastery
from quizmastery.db.database import session_scope
from quizmastery.db.models import AttemptRow, LearnerRecordRow, TopicMasteryRow, User


@dataclass
class LearnerUpdate:
    """Changes computed against a LearnerRecord snapshot."""

    mastery: list[TopicMastery] = field(default_factory=list)
    appended: list[AttemptRecord] = field(default_factory=list)


class _VersionConflict(Exception):
    """Another writer committed to the learner record first."""


def _to_domain(row: LearnerRecordRow) -> LearnerRecord:
    return LearnerRecord(
        student_id=row.student_id,
        mastery={
            m.topic: TopicMastery.from_raw(m.topic, m.score, m.total_attempts)
            for m in row.mastery
        },
        history=[
            AttemptRecord(
                question_id=a.question_id,
                is_correct=bool(a.is_correct),
                time_taken=float(a.time_taken or 0.0),
                topic=a.topic,
            )
            for a in row.attempts
        ],
    )


def _check_update(prior: LearnerRecord, change: LearnerUpdate) -> None:
    """Guard record invariants before anything is written."""
    seen: set[str] = set()
    for new in change.mastery:
        if new.topic in seen:
            raise MasteryInvariantViolation(f"Topic {new.topic!r} updated twice in one write")
        seen.add(new.topic)
        old = prior.mastery_for(new.topic)
        if new.total_attempts < old.total_attempts:
            raise MasteryInvariantViolation(
                f"totalAttempts for {new.topic!r} would decrease "
                f"({old.total_attempts} -> {new.total_attempts})"
            )
        if not 0.0 <= new.score <= 1.0:
            raise MasteryInvariantViolation(f"Score {new.score} for {new.topic!r} outside [0, 1]")


class LearnerStore:
    """SQLAlchemy-backed store of learner records."""

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        max_retries: int | None = None,
    ):
        """
        Initialize store.

        Args:
            session_factory: Session factory (defaults to the configured database)
            max_retries: Attempts per write when version conflicts occur
        """
        self.session_factory = session_factory
        if max_retries is None:
            max_retries = get_settings().store_max_retries
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.max_retries = max_retries
        # Entries drop once no writer holds the student's lock
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, student_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(student_id)
            if lock is None:
                lock = self._locks[student_id] = threading.Lock()
            return lock

    # ========================================
    # Reads
    # ========================================

    def _load(self, session: Session, student_ids: Iterable[str]) -> list[LearnerRecordRow]:
        return list(
            session.scalars(
                select(LearnerRecordRow)
                .where(LearnerRecordRow.student_id.in_(list(student_ids)))
                .options(
                    selectinload(LearnerRecordRow.mastery),
                    selectinload(LearnerRecordRow.attempts),
                )
            ).all()
        )

    def get(self, student_id: str) -> LearnerRecord | None:
        """Committed snapshot of a student's record, or None if it does not exist."""
        return self.get_many([student_id]).get(student_id)

    def get_many(self, student_ids: Iterable[str]) -> dict[str, LearnerRecord]:
        """Snapshots for every student that has a record, keyed by student id."""
        ids = list(dict.fromkeys(student_ids))
        if not ids:
            return {}
        try:
            with session_scope(self.session_factory) as session:
                return {row.student_id: _to_domain(row) for row in self._load(session, ids)}
        except DBAPIError as e:
            logger.error(f"Learner record read failed: {e}")
            raise StoreUnavailable("Learner records are temporarily unavailable") from e

    def get_or_create(self, student_id: str) -> LearnerRecord:
        """Return the student's record, creating an empty one on first access."""
        record = self.get(student_id)
        if record is not None:
            return record
        return self.apply(student_id, lambda _: LearnerUpdate())[0]

    # ========================================
    # Writes
    # ========================================

    def apply(
        self,
        student_id: str,
        mutate: Callable[[LearnerRecord], LearnerUpdate],
    ) -> tuple[LearnerRecord, LearnerUpdate]:
        """
        Atomically read, mutate and write back one student's record.

        `mutate` receives a snapshot and returns the changes to persist. It
        may raise to abort; nothing is written in that case. It can be called
        more than once when a concurrent writer wins the version race.

        Returns:
            Tuple of (record after the write, update that was applied)

        Raises:
            StoreUnavailable: Persistence failed or conflicts exhausted retries
        """
        with self._lock_for(student_id):
            for attempt in range(1, self.max_retries + 1):
                try:
                    return self._apply_once(student_id, mutate)
                except _VersionConflict:
                    logger.warning(
                        f"Version conflict on learner {student_id} "
                        f"(attempt {attempt}/{self.max_retries})"
                    )
                except IntegrityError as e:
                    logger.warning(f"Concurrent insert for learner {student_id}: {e.orig}")
                except DBAPIError as e:
                    logger.error(f"Learner record write failed for {student_id}: {e}")
                    raise StoreUnavailable("Progress could not be saved; please retry") from e

        raise StoreUnavailable(
            f"Progress for {student_id} is being updated elsewhere; please retry"
        )

    def _apply_once(
        self,
        student_id: str,
        mutate: Callable[[LearnerRecord], LearnerUpdate],
    ) -> tuple[LearnerRecord, LearnerUpdate]:
        with session_scope(self.session_factory) as session:
            rows = self._load(session, [student_id])
            if rows:
                row = rows[0]
            else:
                row = LearnerRecordRow(student_id=student_id, version=0)
                session.add(row)
                session.flush()
                logger.info(f"Created learner record for {student_id}")

            prior = _to_domain(row)
            change = mutate(prior)
            _check_update(prior, change)

            expected = row.version
            result = session.execute(
                update(LearnerRecordRow)
                .where(LearnerRecordRow.id == row.id, LearnerRecordRow.version == expected)
                .values(version=expected + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise _VersionConflict()

            existing = {m.topic: m for m in row.mastery}
            for new in change.mastery:
                mastery_row = existing.get(new.topic)
                if mastery_row is None:
                    session.add(
                        TopicMasteryRow(
                            learner_id=row.id,
                            topic=new.topic,
                            score=new.score,
                            total_attempts=new.total_attempts,
                        )
                    )
                else:
                    mastery_row.score = new.score
                    mastery_row.total_attempts = new.total_attempts

            next_sequence = len(prior.history)
            for offset, record in enumerate(change.appended):
                session.add(
                    AttemptRow(
                        learner_id=row.id,
                        sequence=next_sequence + offset,
                        question_id=record.question_id,
                        topic=record.topic,
                        is_correct=record.is_correct,
                        time_taken=record.time_taken,
                    )
                )

        mastery = dict(prior.mastery)
        for new in change.mastery:
            mastery[new.topic] = new
        after = LearnerRecord(
            student_id=student_id,
            mastery=mastery,
            history=prior.history + list(change.appended),
        )
        return after, change

    # ========================================
    # Users
    # ========================================

    def add_user(
        self,
        user_id: str,
        name: str,
        email: str | None = None,
        role: str = "student",
    ) -> None:
        """Insert or update a user row (seeding and tests; accounts are external)."""
        with session_scope(self.session_factory) as session:
            user = session.get(User, user_id) or User(id=user_id)
            user.name = name
            user.email = email
            user.role = role
            session.add(user)

    def get_profile(self, user_id: str) -> StudentProfile | None:
        try:
            with session_scope(self.session_factory) as session:
                user = session.get(User, user_id)
                if user is None:
                    return None
                return StudentProfile(id=user.id, name=user.name, email=user.email)
        except DBAPIError as e:
            logger.error(f"Profile read failed for {user_id}: {e}")
            raise StoreUnavailable("Profiles are temporarily unavailable") from e

    def get_role(self, user_id: str) -> str | None:
        """Role of a known user (student, instructor, admin), or None."""
        try:
            with session_scope(self.session_factory) as session:
                return session.scalar(select(User.role).where(User.id == user_id))
        except DBAPIError as e:
            logger.error(f"Role lookup failed for {user_id}: {e}")
            raise StoreUnavailable("Accounts are temporarily unavailable") from e

    def list_students(self) -> list[StudentProfile]:
        """Every user with the student role, oldest account first."""
        try:
            with session_scope(self.session_factory) as session:
                users = session.scalars(
                    select(User).where(User.role == "student").order_by(User.created_at, User.id)
                ).all()
                return [StudentProfile(id=u.id, name=u.name, email=u.email) for u in users]
        except DBAPIError as e:
            logger.error(f"Student listing failed: {e}")
            raise StoreUnavailable("Student list is temporarily unavailable") from e
