"""
app/domain/submission.py

Lightweight submission views used by statistics and reporting helpers.
ORM ``Submission`` rows satisfy the same attribute contract.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class SubmissionSnapshot:
    reported_at: datetime
    value: str | None = None
    category_value: str | None = None
    disaggregation_key: str | None = None
    is_anomaly: bool = False


@dataclass(frozen=True)
class NormalizedValue:
    """Canonical stored value plus the category ids for CATEGORICAL indicators."""

    value: str
    category_value: str | None = None


@dataclass(frozen=True)
class IndicatorStatistics:
    """
    Summary over all submissions of one indicator. Categorical indicators
    fill the distribution fields, numeric ones the value fields.
    """

    submission_count: int
    anomaly_count: int
    anomaly_rate: float
    last_submission_date: datetime | None
    category_distribution: list[Any] = field(default_factory=list)
    most_frequent: Any = None
    current_value: float | None = None
    average: float | None = None
    min_value: float | None = None
    max_value: float | None = None
    trend: str | None = None
    progress_to_target: float | None = None
    progress_from_baseline: float | None = None


def category_source(submission: Any) -> str | None:
    """Category ids live in ``category_value``; older rows only carry ``value``."""
    category_value = getattr(submission, "category_value", None)
    if category_value is not None:
        return category_value
    return getattr(submission, "value", None)


def reported_at_utc(submission: Any) -> datetime:
    reported_at: datetime = submission.reported_at
    if reported_at.tzinfo is None:
        return reported_at.replace(tzinfo=timezone.utc)
    return reported_at
