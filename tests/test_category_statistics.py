"""
tests/test_category_statistics.py

Distribution, trend, disaggregation and compliance statistics over
categorical submissions. Pure Python, no database.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.domain.categorical import CategoryDefinition
from app.domain.submission import SubmissionSnapshot
from app.services.category_statistics import (
    UNGROUPED_KEY,
    calculate_reporting_compliance,
    get_category_distribution,
    get_category_trend,
    get_disaggregated_category_distribution,
    get_most_frequent_category,
)
from app.validators.categorical_validator import validate_category_config

NOW = datetime(2026, 6, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def categories() -> list[CategoryDefinition]:
    return [
        CategoryDefinition(id="yes", label="Yes"),
        CategoryDefinition(id="no", label="No"),
        CategoryDefinition(id="partial", label="Partial"),
    ]


def _snapshot(value: str, days_ago: int = 0, key: str = "") -> SubmissionSnapshot:
    return SubmissionSnapshot(
        reported_at=NOW - timedelta(days=days_ago),
        value=value,
        category_value=value,
        disaggregation_key=key,
    )


# ---------------------------------------------------------------------------
# Distribution
# ---------------------------------------------------------------------------


def test_distribution_counts_and_percentages(categories: list[CategoryDefinition]) -> None:
    submissions = [_snapshot("yes"), _snapshot("yes"), _snapshot("no"), _snapshot("yes,partial")]

    stats = get_category_distribution(submissions, categories)

    assert [item.category_id for item in stats] == ["yes", "no", "partial"]
    assert stats[0].count == 3
    assert stats[0].percentage == pytest.approx(60.0)
    assert sum(item.percentage for item in stats) == pytest.approx(100.0)


def test_distribution_ties_keep_category_order(categories: list[CategoryDefinition]) -> None:
    stats = get_category_distribution([_snapshot("partial"), _snapshot("no")], categories)

    assert [item.category_id for item in stats] == ["no", "partial", "yes"]


def test_distribution_without_submissions_is_all_zero(categories: list[CategoryDefinition]) -> None:
    stats = get_category_distribution([], categories)

    assert all(item.count == 0 and item.percentage == 0.0 for item in stats)
    assert get_most_frequent_category([], categories) is None


def test_unknown_ids_are_ignored(categories: list[CategoryDefinition]) -> None:
    stats = get_category_distribution([_snapshot("maybe"), _snapshot("no")], categories)

    assert stats[0].category_id == "no"
    assert stats[0].percentage == pytest.approx(100.0)


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------


def test_trend_detects_change_between_windows(categories: list[CategoryDefinition]) -> None:
    submissions = [
        _snapshot("no", days_ago=5),
        _snapshot("no", days_ago=10),
        _snapshot("yes", days_ago=40),
        _snapshot("yes", days_ago=50),
    ]

    trend = get_category_trend(submissions, categories, now=NOW)

    assert trend.current == "no"
    assert trend.previous == "yes"
    assert trend.is_changing is True


def test_trend_without_older_data_is_not_changing(categories: list[CategoryDefinition]) -> None:
    trend = get_category_trend([_snapshot("yes", days_ago=1)], categories, now=NOW)

    assert trend.current == "yes"
    assert trend.previous is None
    assert trend.is_changing is False


def test_trend_of_empty_input(categories: list[CategoryDefinition]) -> None:
    trend = get_category_trend([], categories, now=NOW)

    assert (trend.current, trend.previous, trend.is_changing) == (None, None, False)


# ---------------------------------------------------------------------------
# Disaggregation and compliance
# ---------------------------------------------------------------------------


def test_disaggregated_distribution_groups_by_key(categories: list[CategoryDefinition]) -> None:
    submissions = [
        _snapshot("yes", key="north"),
        _snapshot("no", days_ago=3, key="north"),
        _snapshot("partial", key=""),
    ]

    groups = get_disaggregated_category_distribution(submissions, categories)

    assert [group.disaggregation_key for group in groups] == ["north", UNGROUPED_KEY]
    assert groups[0].total_submissions == 2
    assert groups[0].last_reported_at == NOW
    assert groups[1].disaggregation_label == "No Disaggregation"


def test_reporting_compliance_counts_expected_reports() -> None:
    config = validate_category_config(
        {
            "reportingFrequency": "MONTHLY",
            "expectedReportingEntities": 2,
            "disaggregationDimensions": [
                {"key": "site", "label": "Site", "values": ["a", "b"], "required": True}
            ],
        }
    )
    submissions = [_snapshot("yes", days_ago=10, key="a"), _snapshot("yes", days_ago=40, key="a")]

    stats = calculate_reporting_compliance(
        submissions,
        config,
        start_date=NOW - timedelta(days=90),
        end_date=NOW,
    )

    assert stats.expected_reports == 6
    assert stats.received_reports == 2
    assert stats.missing_reports == 4
    assert stats.by_disaggregation["a"].received == 2
    assert stats.by_disaggregation["b"].received == 0
    assert stats.by_disaggregation["b"].last_reported_at is None


def test_reporting_compliance_without_entities_is_empty() -> None:
    stats = calculate_reporting_compliance(
        [],
        validate_category_config({}),
        start_date=NOW - timedelta(days=30),
        end_date=NOW,
    )

    assert stats.expected_reports == 0
    assert stats.by_disaggregation == {}
