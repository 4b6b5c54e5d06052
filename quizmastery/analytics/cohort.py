"""
Cohort Analytics Aggregator.

Read-only summaries of many students' mastery for instructor and admin views.

Two counters are reported and deliberately kept apart:
- total_attempts: length of the student's attempt history
- TopicMastery.total_attempts: questions folded into that topic's score
They agree whenever every submitted session carries its attempt records.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from statistics import fmean
from typing import Any

from config import get_settings
from quizmastery.core.mastery import MasteryLevel
from quizmastery.core.models import LearnerRecord, StudentProfile, TopicMastery
from quizmastery.db.store import LearnerStore


def overall_average(mastery: Mapping[str, TopicMastery]) -> float | None:
    """
    Mean score over attempted topics only.

    Returns None when no topic has been attempted; an average of zero
    terms is "not started", never 0%.
    """
    scores = [m.score for m in mastery.values() if m.attempted]
    if not scores:
        return None
    return fmean(scores)


@dataclass
class StudentSummary:
    """One row of the cohort view."""

    student_id: str
    per_topic_mastery: dict[str, TopicMastery]
    overall_average_mastery: float | None
    total_attempts: int
    level: MasteryLevel
    name: str = ""
    email: str | None = None

    @property
    def started(self) -> bool:
        return self.overall_average_mastery is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "studentId": self.student_id,
            "name": self.name,
            "email": self.email,
            "mastery": {t: m.to_dict() for t, m in self.per_topic_mastery.items()},
            "overallAverageMastery": self.overall_average_mastery,
            "level": self.level.value,
            "totalAttempts": self.total_attempts,
        }


@dataclass
class CohortOverview:
    """Headline numbers across a cohort."""

    student_count: int
    started_count: int
    average_mastery: float | None
    at_risk: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "studentCount": self.student_count,
            "startedCount": self.started_count,
            "averageMastery": self.average_mastery,
            "atRisk": list(self.at_risk),
        }


def summarize_record(
    student_id: str,
    record: LearnerRecord | None,
    profile: StudentProfile | None = None,
    review_threshold: float | None = None,
    proficient_threshold: float | None = None,
) -> StudentSummary:
    """Summarize one student; a missing record counts as empty."""
    settings = get_settings()
    mastery = dict(record.mastery) if record else {}
    average = overall_average(mastery)
    return StudentSummary(
        student_id=student_id,
        per_topic_mastery=mastery,
        overall_average_mastery=average,
        total_attempts=len(record.history) if record else 0,
        level=MasteryLevel.from_average(
            average,
            review_threshold if review_threshold is not None else settings.review_threshold,
            proficient_threshold if proficient_threshold is not None else settings.proficient_threshold,
        ),
        name=profile.name if profile else "",
        email=profile.email if profile else None,
    )


class CohortAnalyticsAggregator:
    """Aggregates learner records across students. Never writes."""

    def __init__(self, store: LearnerStore):
        self.store = store

    def summarize(
        self,
        student_ids: Iterable[str],
        profiles: Mapping[str, StudentProfile] | None = None,
    ) -> list[StudentSummary]:
        """
        Summaries in the order the ids were given.

        Students without a LearnerRecord are reported as not started with
        zero attempts.
        """
        ids = list(student_ids)
        records = self.store.get_many(ids)
        profiles = profiles or {}
        return [summarize_record(sid, records.get(sid), profiles.get(sid)) for sid in ids]

    def summarize_all_students(self) -> list[StudentSummary]:
        """Every student account, in store order."""
        students = self.store.list_students()
        return self.summarize([s.id for s in students], {s.id: s for s in students})


def cohort_overview(
    summaries: Iterable[StudentSummary],
    review_threshold: float | None = None,
) -> CohortOverview:
    """Cohort size, how many have started, mean of started averages, and who is at risk."""
    if review_threshold is None:
        review_threshold = get_settings().review_threshold

    rows = list(summaries)
    started = [s for s in rows if s.overall_average_mastery is not None]
    return CohortOverview(
        student_count=len(rows),
        started_count=len(started),
        average_mastery=fmean(s.overall_average_mastery for s in started) if started else None,
        at_risk=[
            s.student_id for s in started if s.overall_average_mastery < review_threshold
        ],
    )
