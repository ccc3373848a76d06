"""
reporting/gap_detector.py

Detects stretches between consecutive submissions that are longer than the
expected reporting cadence allows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from app.errors import ValidationError
from app.failure_codes import INVALID_FREQUENCY

_SECONDS_PER_DAY = 86_400.0


class ReportingCadence:
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


DEFAULT_EXPECTED_INTERVAL_DAYS: dict[str, float] = {
    ReportingCadence.DAILY: 1.0,
    ReportingCadence.WEEKLY: 7.0,
    ReportingCadence.MONTHLY: 30.0,
}
DEFAULT_TOLERANCE_MULTIPLIER = 1.5


@dataclass(frozen=True)
class ReportingGap:
    from_date: datetime
    to_date: datetime
    days_missing: int
    expected_submissions: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_date.isoformat(),
            "to": self.to_date.isoformat(),
            "daysMissing": self.days_missing,
            "expectedSubmissions": self.expected_submissions,
        }


class ReportingGapDetector:
    """
    A gap is emitted for each consecutive pair whose elapsed days exceed
    ``expected * tolerance_multiplier``.
    """

    def __init__(
        self,
        *,
        expected_interval_days: Mapping[str, float] | None = None,
        tolerance_multiplier: float = DEFAULT_TOLERANCE_MULTIPLIER,
    ) -> None:
        self._expected = dict(expected_interval_days or DEFAULT_EXPECTED_INTERVAL_DAYS)
        self._tolerance = tolerance_multiplier

    def detect(self, submissions: Iterable[Any], cadence: str) -> list[ReportingGap]:
        """
        ``submissions`` may be ORM rows or any object with ``reported_at``;
        they are sorted here, so callers need not pre-sort.
        """

        expected_days = self._expected_days(cadence)
        dates = sorted(_as_utc(_reported_at(item)) for item in submissions)
        if len(dates) < 2:
            return []

        threshold = expected_days * self._tolerance
        gaps: list[ReportingGap] = []
        for previous, current in zip(dates, dates[1:]):
            elapsed = (current - previous).total_seconds() / _SECONDS_PER_DAY
            if elapsed <= threshold:
                continue
            gaps.append(
                ReportingGap(
                    from_date=previous,
                    to_date=current,
                    days_missing=math.floor(elapsed - expected_days),
                    expected_submissions=math.floor(elapsed / expected_days) - 1,
                )
            )
        return gaps

    def _expected_days(self, cadence: str) -> float:
        key = (cadence or "").strip().upper()
        if key not in self._expected:
            allowed = ", ".join(sorted(self._expected))
            raise ValidationError(
                INVALID_FREQUENCY,
                f"Unknown reporting cadence '{cadence}'. Allowed values: {allowed}.",
            )
        return self._expected[key]


def detect_reporting_gaps(
    submissions: Iterable[Any],
    cadence: str,
    *,
    expected_interval_days: Mapping[str, float] | None = None,
    tolerance_multiplier: float = DEFAULT_TOLERANCE_MULTIPLIER,
) -> list[ReportingGap]:
    detector = ReportingGapDetector(
        expected_interval_days=expected_interval_days,
        tolerance_multiplier=tolerance_multiplier,
    )
    return detector.detect(submissions, cadence)


def _reported_at(item: Any) -> datetime:
    if isinstance(item, datetime):
        return item
    if isinstance(item, Mapping):
        return item["reported_at"]
    return item.reported_at


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
