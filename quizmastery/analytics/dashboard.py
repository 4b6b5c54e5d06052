"""
Student dashboard read model.

Builds the mastery mapping, the recent activity feed and the headline KPIs
shown on a student's dashboard, and picks the topic to suggest next.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from config import get_settings
from quizmastery.core.models import AttemptRecord, LearnerRecord, TopicMastery
from quizmastery.db.store import LearnerStore


def suggest_topic(mastery: Mapping[str, TopicMastery]) -> str | None:
    """
    Attempted topic with the lowest score.

    Ties go to the earliest topic in mapping order. Returns None when no
    topic has been attempted.
    """
    lowest: TopicMastery | None = None
    for item in mastery.values():
        if item.attempted and (lowest is None or item.score < lowest.score):
            lowest = item
    return lowest.topic if lowest else None


@dataclass
class DashboardKpis:
    highest_topic: str | None = None
    highest_score: float | None = None
    recent_accuracy: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "highestTopic": self.highest_topic or "N/A",
            "highestScore": self.highest_score,
            "recentAccuracy": self.recent_accuracy if self.recent_accuracy is not None else "N/A",
        }


def compute_kpis(
    mastery: Mapping[str, TopicMastery],
    recent: list[AttemptRecord],
) -> DashboardKpis:
    """Highest attempted topic and accuracy over the recent activity window."""
    kpis = DashboardKpis()
    for item in mastery.values():
        if item.attempted and (kpis.highest_score is None or item.score > kpis.highest_score):
            kpis.highest_topic = item.topic
            kpis.highest_score = item.score
    if recent:
        kpis.recent_accuracy = sum(1 for a in recent if a.is_correct) / len(recent)
    return kpis


@dataclass
class Dashboard:
    student_id: str
    mastery: dict[str, TopicMastery]
    recent_activity: list[AttemptRecord]
    suggested_topic: str | None
    kpis: DashboardKpis = field(default_factory=DashboardKpis)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mastery": {t: m.to_dict() for t, m in self.mastery.items()},
            "recentActivity": [
                {
                    "question": a.question_id,
                    "topic": a.topic,
                    "isCorrect": a.is_correct,
                    "timeTaken": a.time_taken,
                }
                for a in self.recent_activity
            ],
            "suggestedTopic": self.suggested_topic,
            "kpis": self.kpis.to_dict(),
        }


def build_dashboard(record: LearnerRecord, limit: int | None = None) -> Dashboard:
    """Dashboard view of one learner record."""
    if limit is None:
        limit = get_settings().recent_activity_limit
    recent = record.recent_activity(limit)
    return Dashboard(
        student_id=record.student_id,
        mastery=dict(record.mastery),
        recent_activity=recent,
        suggested_topic=suggest_topic(record.mastery),
        kpis=compute_kpis(record.mastery, recent),
    )


def get_dashboard(store: LearnerStore, student_id: str, limit: int | None = None) -> Dashboard:
    """Load (creating on first access) a student's record and build the dashboard."""
    return build_dashboard(store.get_or_create(student_id), limit)
