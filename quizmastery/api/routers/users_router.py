"""
Users router.

Endpoints for:
- Student dashboard data (mastery, recent activity, suggestion)
- Cohort analytics, limited to instructors and admins (403 otherwise)
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from config import get_settings
from quizmastery.analytics.cohort import CohortAnalyticsAggregator, cohort_overview
from quizmastery.analytics.dashboard import get_dashboard
from quizmastery.api.dependencies import get_current_user_id, get_store, require_staff
from quizmastery.db.store import LearnerStore

router = APIRouter()


@router.get("/dashboard-data", summary="Student dashboard data")
def dashboard_data(
    user_id: str = Depends(get_current_user_id),
    store: LearnerStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Mastery per topic plus the most recent attempts (newest first).

    The learner record is created on first access.
    """
    settings = get_settings()
    dashboard = get_dashboard(store, user_id, settings.recent_activity_limit)
    data = dashboard.to_dict()
    profile = store.get_profile(user_id)
    data["profile"] = asdict(profile) if profile else {"id": user_id}
    if data["suggestedTopic"] is None and settings.default_topics:
        data["defaultTopic"] = settings.default_topics[0]
    return data


@router.get("/analytics/students", summary="Per-student mastery summaries")
def student_analytics(
    user_id: str = Depends(require_staff),
    store: LearnerStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    """Every student with their mastery mapping, overall average and attempt count."""
    aggregator = CohortAnalyticsAggregator(store)
    return [summary.to_dict() for summary in aggregator.summarize_all_students()]


@router.get("/analytics/overview", summary="Cohort overview")
def analytics_overview(
    user_id: str = Depends(require_staff),
    store: LearnerStore = Depends(get_store),
) -> Dict[str, Any]:
    """Cohort size, started count, average mastery and at-risk students."""
    aggregator = CohortAnalyticsAggregator(store)
    return cohort_overview(aggregator.summarize_all_students()).to_dict()
