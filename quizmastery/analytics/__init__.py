"""
Analytics Module.

Read-side views over learner records:
- cohort: per-student summaries and cohort overview for instructors
- dashboard: a student's mastery, recent activity and suggested topic
"""

from quizmastery.analytics.cohort import (
    CohortAnalyticsAggregator,
    CohortOverview,
    StudentSummary,
    cohort_overview,
    overall_average,
)
from quizmastery.analytics.dashboard import (
    Dashboard,
    build_dashboard,
    get_dashboard,
    suggest_topic,
)

__all__ = [
    "CohortAnalyticsAggregator",
    "CohortOverview",
    "StudentSummary",
    "cohort_overview",
    "overall_average",
    "Dashboard",
    "build_dashboard",
    "get_dashboard",
    "suggest_topic",
]
