"""
app/services/category_statistics.py

Distribution, trend and compliance statistics over categorical submissions.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Sequence

from app.domain.categorical import (
    CategoryConfig,
    CategoryDefinition,
    CategoryStats,
    CategoryTrend,
    DisaggregatedCategoryStats,
    EntityCompliance,
    ReportingComplianceStats,
    ReportingFrequency,
)
from app.domain.submission import category_source, reported_at_utc
from app.validators.categorical_validator import parse_categorical_value

UNGROUPED_KEY = "_ungrouped"
UNGROUPED_LABEL = "No Disaggregation"

_PERIOD_DAYS = {
    ReportingFrequency.WEEKLY: 7,
    ReportingFrequency.MONTHLY: 30,
    ReportingFrequency.QUARTERLY: 90,
    ReportingFrequency.YEARLY: 365,
}


def get_category_distribution(
    submissions: Iterable[Any],
    categories: Sequence[CategoryDefinition],
) -> list[CategoryStats]:
    """
    Count selections per category. Percentages are over total recognised
    selections, so a multi-select submission counts once per id. Ties keep
    the category definition order.
    """

    counts = {category.id: 0 for category in categories}
    total_selections = 0
    for submission in submissions:
        raw_value = category_source(submission)
        if not isinstance(raw_value, str):
            continue
        for category_id in parse_categorical_value(raw_value):
            if category_id in counts:
                counts[category_id] += 1
                total_selections += 1

    stats = [
        CategoryStats(
            category_id=category.id,
            label=category.label,
            count=counts[category.id],
            percentage=(counts[category.id] / total_selections * 100) if total_selections else 0.0,
        )
        for category in categories
    ]
    return sorted(stats, key=lambda item: item.count, reverse=True)


def get_most_frequent_category(
    submissions: Iterable[Any],
    categories: Sequence[CategoryDefinition],
) -> CategoryStats | None:
    distribution = get_category_distribution(submissions, categories)
    if not distribution or distribution[0].count == 0:
        return None
    return distribution[0]


def get_category_trend(
    submissions: Sequence[Any],
    categories: Sequence[CategoryDefinition],
    *,
    window_days: int = 30,
    now: datetime | None = None,
) -> CategoryTrend:
    """
    Compare the most frequent category inside the last ``window_days`` with
    the one before it.
    """

    if not submissions:
        return CategoryTrend(current=None, previous=None, is_changing=False)

    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    cutoff = reference - timedelta(days=window_days)

    recent = [item for item in submissions if reported_at_utc(item) >= cutoff]
    older = [item for item in submissions if reported_at_utc(item) < cutoff]

    current_most = get_most_frequent_category(recent, categories)
    previous_most = get_most_frequent_category(older, categories)
    current = current_most.category_id if current_most else None
    previous = previous_most.category_id if previous_most else None
    return CategoryTrend(
        current=current,
        previous=previous,
        is_changing=current is not None and previous is not None and current != previous,
    )


def get_disaggregated_category_distribution(
    submissions: Iterable[Any],
    categories: Sequence[CategoryDefinition],
) -> list[DisaggregatedCategoryStats]:
    groups: dict[str, list[Any]] = defaultdict(list)
    for submission in submissions:
        key = getattr(submission, "disaggregation_key", None) or UNGROUPED_KEY
        groups[key].append(submission)

    stats = []
    for key, members in groups.items():
        last_reported = max((reported_at_utc(item) for item in members), default=None)
        stats.append(
            DisaggregatedCategoryStats(
                disaggregation_key=key,
                disaggregation_label=UNGROUPED_LABEL if key == UNGROUPED_KEY else key,
                category_distribution=get_category_distribution(members, categories),
                total_submissions=len(members),
                last_reported_at=last_reported,
            )
        )
    return sorted(stats, key=lambda item: item.total_submissions, reverse=True)


def calculate_reporting_compliance(
    submissions: Sequence[Any],
    config: CategoryConfig | None,
    *,
    start_date: datetime,
    end_date: datetime,
    frequency: str | None = None,
) -> ReportingComplianceStats:
    """
    Expected reports are ``expected_reporting_entities * periods`` where the
    entities are the values of the first disaggregation dimension.
    """

    expected_entities = int(config.expected_reporting_entities or 0) if config else 0
    if config is None or not config.disaggregation_dimensions or expected_entities == 0:
        return ReportingComplianceStats()

    dimension = config.disaggregation_dimensions[0]
    period_count = _period_count(
        start_date,
        end_date,
        frequency or config.reporting_frequency or ReportingFrequency.MONTHLY,
    )
    expected_reports = expected_entities * period_count

    by_entity: dict[str, list[Any]] = defaultdict(list)
    for submission in submissions:
        by_entity[getattr(submission, "disaggregation_key", None) or "_unknown"].append(submission)

    by_disaggregation: dict[str, EntityCompliance] = {}
    for entity in dimension.values:
        entity_submissions = by_entity.get(entity, [])
        received = len(entity_submissions)
        by_disaggregation[entity] = EntityCompliance(
            expected=period_count,
            received=received,
            rate=(received / period_count * 100) if period_count > 0 else 0.0,
            last_reported_at=max(
                (reported_at_utc(item) for item in entity_submissions), default=None
            ),
        )

    received_reports = len(submissions)
    return ReportingComplianceStats(
        expected_reports=expected_reports,
        received_reports=received_reports,
        compliance_rate=(received_reports / expected_reports * 100) if expected_reports else 0.0,
        # Every received report counts as on time until due dates are modelled.
        on_time_reports=received_reports,
        late_reports=0,
        missing_reports=expected_reports - received_reports,
        by_disaggregation=by_disaggregation,
    )


def _period_count(start_date: datetime, end_date: datetime, frequency: str) -> int:
    days = math.floor((end_date - start_date).total_seconds() / 86_400)
    if frequency == ReportingFrequency.DAILY:
        return days + 1
    period_days = _PERIOD_DAYS.get(frequency)
    if period_days is None:
        return 1
    return math.ceil(days / period_days)
