"""
tests/test_submission_service.py

Direct submissions, anomaly review transitions and indicator statistics.
"""

from __future__ import annotations

import uuid

import pytest

from app.errors import ConflictError, NotFoundError, ValidationError
from app.services.submission_service import SubmissionService
from db.models import AnomalyStatus

BASELINE = [10, 11, 9, 10, 12, 10, 11, 9]


@pytest.fixture()
def service() -> SubmissionService:
    return SubmissionService()


def _submit(service, db, indicator, reported_at: str, value, **extra):
    payload = {"reportedAt": reported_at, "value": value, **extra}
    return service.create_submission(db=db, indicator_id=indicator.id, payload=payload, user_id="user-1")


def _flagged_submission(service, db, make_indicator):
    indicator = make_indicator(anomaly_config={"enabled": True})
    for month, value in enumerate(BASELINE, start=1):
        _submit(service, db, indicator, f"2026-{month:02d}-01", value)
    spike = _submit(service, db, indicator, "2026-09-01", 50)
    assert spike.is_anomaly is True
    return spike


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def test_create_stores_canonical_value(db, service, make_indicator) -> None:
    indicator = make_indicator()

    submission = _submit(service, db, indicator, "2026-01-15", "42.0", evidence="register")

    assert submission.value == "42"
    assert submission.evidence == "register"
    assert submission.created_by_user_id == "user-1"
    assert submission.is_anomaly is False
    assert submission.anomaly_status is None


def test_duplicate_date_conflicts(db, service, make_indicator) -> None:
    indicator = make_indicator()
    _submit(service, db, indicator, "2026-01-15", 1)

    with pytest.raises(ConflictError) as exc_info:
        _submit(service, db, indicator, "2026-01-15", 2)

    assert exc_info.value.code == "DUPLICATE_SUBMISSION"
    assert len(service.list_submissions(db=db, indicator_id=indicator.id)) == 1


def test_same_date_with_other_disaggregation_is_allowed(db, service, make_indicator) -> None:
    indicator = make_indicator()
    _submit(service, db, indicator, "2026-01-15", 1, disaggregationKey="north")
    _submit(service, db, indicator, "2026-01-15", 2, disaggregationKey="south")

    assert len(service.list_submissions(db=db, indicator_id=indicator.id)) == 2


@pytest.mark.parametrize(
    ("payload", "code"),
    [
        ({"reportedAt": "not a date", "value": 1}, "INVALID_DATE"),
        ({"value": 1}, "INVALID_PAYLOAD"),
        ({"reportedAt": "2026-01-01", "value": "many"}, "INVALID_VALUE"),
    ],
)
def test_invalid_payloads_are_rejected(db, service, make_indicator, payload, code) -> None:
    indicator = make_indicator()

    with pytest.raises(ValidationError) as exc_info:
        service.create_submission(db=db, indicator_id=indicator.id, payload=payload)

    assert exc_info.value.code == code


def test_unknown_indicator(db, service) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        service.create_submission(
            db=db,
            indicator_id=uuid.uuid4(),
            payload={"reportedAt": "2026-01-01", "value": 1},
        )

    assert exc_info.value.code == "INDICATOR_NOT_FOUND"


def test_value_outside_bounds_is_rejected(db, service, make_indicator) -> None:
    indicator = make_indicator(max_value=100)

    with pytest.raises(ValidationError) as exc_info:
        _submit(service, db, indicator, "2026-01-01", 150)

    assert exc_info.value.code == "VALUE_TOO_HIGH"
    assert exc_info.value.message == "Value must be <= 100"
    assert service.list_submissions(db=db, indicator_id=indicator.id) == []


def test_series_mode_uses_prior_history(db, service, make_indicator) -> None:
    indicator = make_indicator(anomaly_config={"enabled": True})
    for month, value in enumerate(BASELINE, start=1):
        created = _submit(service, db, indicator, f"2026-{month:02d}-01", value)
        assert created.is_anomaly is False

    spike = _submit(service, db, indicator, "2026-09-01", 50)
    backfill = _submit(service, db, indicator, "2025-12-01", 50)

    assert spike.is_anomaly is True
    assert spike.anomaly_reason.startswith("Outlier (MAD)")
    assert backfill.is_anomaly is False


def test_categorical_submission_keeps_category_ids(db, service, make_indicator) -> None:
    indicator = make_indicator(
        data_type="CATEGORICAL",
        categories=[{"id": "yes", "label": "Yes"}, {"id": "no", "label": "No"}],
    )

    submission = _submit(service, db, indicator, "2026-01-01", "yes")

    assert submission.value == "yes"
    assert submission.category_value == "yes"


# ---------------------------------------------------------------------------
# Anomaly review
# ---------------------------------------------------------------------------


def test_review_records_reviewer_and_notes(db, service, make_indicator) -> None:
    submission = _flagged_submission(service, db, make_indicator)

    acknowledged = service.acknowledge_anomaly(
        db=db, submission_id=submission.id, user_id="reviewer-7", notes="checking source"
    )
    assert acknowledged.anomaly_status == AnomalyStatus.ACKNOWLEDGED
    assert acknowledged.anomaly_reviewed_by == "reviewer-7"
    assert acknowledged.anomaly_reviewed_at is not None

    resolved = service.resolve_anomaly(db=db, submission_id=submission.id, user_id="reviewer-8")
    assert resolved.anomaly_status == AnomalyStatus.RESOLVED
    assert resolved.anomaly_reviewed_by == "reviewer-8"
    assert resolved.anomaly_notes == "checking source"
    assert resolved.is_anomaly is True


def test_false_positive_keeps_flag(db, service, make_indicator) -> None:
    submission = _flagged_submission(service, db, make_indicator)

    reviewed = service.mark_anomaly_false_positive(db=db, submission_id=submission.id)

    assert reviewed.anomaly_status == AnomalyStatus.FALSE_POSITIVE
    assert reviewed.is_anomaly is True


def test_review_requires_flagged_submission(db, service, make_indicator) -> None:
    indicator = make_indicator()
    submission = _submit(service, db, indicator, "2026-01-01", 5)

    with pytest.raises(ValidationError) as exc_info:
        service.acknowledge_anomaly(db=db, submission_id=submission.id)

    assert exc_info.value.code == "NOT_ANOMALY"


def test_review_rejects_unknown_status_and_submission(db, service) -> None:
    with pytest.raises(ValidationError) as exc_info:
        service.update_anomaly_status(db=db, submission_id=uuid.uuid4(), status="CLOSED")
    assert exc_info.value.code == "INVALID_ANOMALY_STATUS"

    with pytest.raises(NotFoundError) as exc_info:
        service.resolve_anomaly(db=db, submission_id=uuid.uuid4())
    assert exc_info.value.code == "SUBMISSION_NOT_FOUND"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def test_list_is_newest_first_and_filters_by_range(db, service, make_indicator) -> None:
    indicator = make_indicator()
    for day, value in [("2026-01-01", 1), ("2026-03-01", 3), ("2026-02-01", 2)]:
        _submit(service, db, indicator, day, value)

    listed = service.list_submissions(db=db, indicator_id=indicator.id)
    bounded = service.list_submissions(
        db=db, indicator_id=indicator.id, start="2026-01-15", end="2026-03-01"
    )

    assert [item.value for item in listed] == ["3", "2", "1"]
    assert [item.value for item in bounded] == ["3", "2"]


def test_reporting_gaps_for_indicator(db, service, make_indicator) -> None:
    indicator = make_indicator()
    _submit(service, db, indicator, "2026-01-01", 1)
    _submit(service, db, indicator, "2026-04-01", 2)

    gaps = service.get_reporting_gaps(db=db, indicator_id=indicator.id, cadence="MONTHLY")

    assert len(gaps) == 1
    assert gaps[0].days_missing == 60


def test_numeric_statistics(db, service, make_indicator) -> None:
    indicator = make_indicator(target_value=60, baseline_value=5)
    for day, value in [("2026-01-01", 10), ("2026-02-01", 20), ("2026-03-01", 30)]:
        _submit(service, db, indicator, day, value)

    stats = service.get_indicator_statistics(db=db, indicator_id=indicator.id)

    assert stats is not None
    assert stats.submission_count == 3
    assert stats.anomaly_count == 0
    assert stats.anomaly_rate == 0
    assert stats.current_value == 30
    assert stats.average == pytest.approx(20)
    assert (stats.min_value, stats.max_value) == (10, 30)
    assert stats.trend == "increasing"
    assert stats.progress_to_target == pytest.approx(50)
    assert stats.progress_from_baseline == pytest.approx(25)


def test_statistics_count_flagged_submissions(db, service, make_indicator) -> None:
    spike = _flagged_submission(service, db, make_indicator)

    stats = service.get_indicator_statistics(db=db, indicator_id=spike.indicator_id)

    assert stats is not None
    assert stats.submission_count == 9
    assert stats.anomaly_count == 1
    assert stats.anomaly_rate == pytest.approx(100 / 9)
    assert stats.current_value == 50


def test_categorical_statistics(db, service, make_indicator) -> None:
    indicator = make_indicator(
        data_type="CATEGORICAL",
        categories=[{"id": "yes", "label": "Yes"}, {"id": "no", "label": "No"}],
    )
    for day, value in [("2026-01-01", "yes"), ("2026-02-01", "yes"), ("2026-03-01", "no")]:
        _submit(service, db, indicator, day, value)

    stats = service.get_indicator_statistics(db=db, indicator_id=indicator.id)

    assert stats is not None
    assert stats.most_frequent.category_id == "yes"
    assert stats.category_distribution[0].count == 2
    assert stats.current_value is None


def test_statistics_without_submissions(db, service, make_indicator) -> None:
    indicator = make_indicator()

    assert service.get_indicator_statistics(db=db, indicator_id=indicator.id) is None
