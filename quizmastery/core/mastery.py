"""
Core Mastery Module.

Mastery banding and numeric normalization for mastery data crossing a
storage or wire boundary.

Design:
- MasteryLevel: Enum for categorizing overall mastery averages
- normalize_score / normalize_attempts: coerce numeric input, reject the rest
"""

from __future__ import annotations

import math
from decimal import Decimal
from enum import Enum
from typing import Any

DEFAULT_REVIEW_THRESHOLD = 0.40
DEFAULT_PROFICIENT_THRESHOLD = 0.70


class MasteryLevel(str, Enum):
    """
    Mastery level categorization for dashboards and cohort views.

    NOT_STARTED is reserved for students with no attempted topic; it is never
    derived from a numeric score of zero.
    """

    NOT_STARTED = "not_started"
    NEEDS_REVIEW = "needs_review"  # below review threshold
    DEVELOPING = "developing"  # between thresholds
    PROFICIENT = "proficient"  # at or above proficient threshold

    @classmethod
    def from_average(
        cls,
        average: float | None,
        review_threshold: float = DEFAULT_REVIEW_THRESHOLD,
        proficient_threshold: float = DEFAULT_PROFICIENT_THRESHOLD,
    ) -> MasteryLevel:
        """
        Convert an overall mastery average to a level.

        Args:
            average: Mean mastery over attempted topics, or None if none attempted
            review_threshold: Averages below this need review
            proficient_threshold: Averages at or above this are proficient

        Returns:
            Corresponding MasteryLevel
        """
        if average is None:
            return cls.NOT_STARTED
        elif average < review_threshold:
            return cls.NEEDS_REVIEW
        elif average < proficient_threshold:
            return cls.DEVELOPING
        else:
            return cls.PROFICIENT

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.replace("_", " ").title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryLevel.NOT_STARTED: "dim",
            MasteryLevel.NEEDS_REVIEW: "red",
            MasteryLevel.DEVELOPING: "yellow",
            MasteryLevel.PROFICIENT: "green",
        }[self]


def _to_number(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValueError(f"expected a number, got {value!r}") from None
    else:
        raise ValueError(f"expected a number, got {type(value).__name__}")
    if not math.isfinite(number):
        raise ValueError(f"expected a finite number, got {value!r}")
    return number


def normalize_score(value: Any) -> float:
    """Coerce a mastery score to float in [0, 1]. Raises ValueError otherwise."""
    score = _to_number(value)
    if score < 0.0 or score > 1.0:
        raise ValueError(f"score {score} outside [0, 1]")
    return score


def normalize_attempts(value: Any) -> int:
    """Coerce an attempt counter to a non-negative int. Raises ValueError otherwise."""
    number = _to_number(value)
    if number < 0 or number != int(number):
        raise ValueError(f"attempt count {value!r} is not a non-negative integer")
    return int(number)


def format_percent(score: float | None) -> str:
    """Format a 0-1 score for display; None renders as 'Not Started'."""
    if score is None:
        return "Not Started"
    return f"{round(score * 100)}%"
