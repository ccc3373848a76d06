"""
tests/test_import_service.py

Stage / validate / commit / rollback phases against an in-memory database.

Coverage
--------
- Staging counts rows and refuses a second run
- File-level failures (empty, no header, row cap) leave the job FAILED
- Validation verdicts, CREATE_ONLY duplicates and re-validation
- A row with errors does not block a later row for the same date
- Commit writes submissions with range anomaly flags; UPSERT overwrites
- A failing commit batch is undone while earlier batches stay written
- The same CSV staged into two jobs gives two independent row sets
- Rollback deletes imported submissions and cancels the job
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from app.config import ImportPipelineSettings
from app.errors import ImportSystemError, ValidationError
from app.services.import_service import ImportService
from db.models import (
    ImportJobStatus,
    ImportMode,
    RowValidationStatus,
    Submission,
)
from db.repositories.import_job_repository import ImportJobRepository

CSV_MIXED = b"reportedAt,value\n2026-01-01,50\n2026-02-01,abc\n\n2026-03-01,500\n"


def _create_job(db, indicator, *, import_mode: str = ImportMode.CREATE_ONLY):
    job = ImportJobRepository(db).create_job(
        indicator_id=indicator.id,
        file_name="values.csv",
        user_id="user-1",
        import_mode=import_mode,
    )
    db.commit()
    return job


def _submission_count(db) -> int:
    return int(db.scalar(select(func.count(Submission.id))) or 0)


@pytest.fixture()
def service() -> ImportService:
    return ImportService(
        settings=ImportPipelineSettings(
            max_rows=5,
            stage_batch_size=2,
            validate_batch_size=2,
            commit_batch_size=2,
        )
    )


@pytest.fixture()
def indicator(make_indicator):
    return make_indicator(min_value=10, max_value=100)


# ---------------------------------------------------------------------------
# Stage
# ---------------------------------------------------------------------------


def test_stage_skips_blank_lines_and_numbers_rows(db, service, indicator) -> None:
    job = _create_job(db, indicator)

    summary = service.parse_and_stage(db=db, job_id=job.id, content=CSV_MIXED)

    rows = ImportJobRepository(db).list_rows(job.id)
    assert summary.total_rows == 3
    assert [row.row_number for row in rows] == [2, 3, 4]
    assert rows[0].raw_data == {"reportedAt": "2026-01-01", "value": "50"}
    assert job.status == ImportJobStatus.VALIDATING
    assert job.total_rows == 3


def test_stage_twice_is_rejected(db, service, indicator) -> None:
    job = _create_job(db, indicator)
    service.parse_and_stage(db=db, job_id=job.id, content=CSV_MIXED)

    with pytest.raises(ValidationError) as exc_info:
        service.parse_and_stage(db=db, job_id=job.id, content=CSV_MIXED)

    assert exc_info.value.code == "INVALID_JOB_STATE"


@pytest.mark.parametrize(
    ("content", "error_type", "code"),
    [
        (b"", ValidationError, "EMPTY_FILE"),
        (b",,\n1,2,3\n", ValidationError, "MISSING_HEADER"),
        (b"reportedAt,value\n\xff\xfe,1\n", ImportSystemError, "CSV_PARSE_FAILED"),
    ],
)
def test_file_level_problems_fail_the_job(db, service, indicator, content, error_type, code) -> None:
    job = _create_job(db, indicator)

    with pytest.raises(error_type) as exc_info:
        service.parse_and_stage(db=db, job_id=job.id, content=content)

    assert exc_info.value.code == code
    assert job.status == ImportJobStatus.FAILED
    assert job.error_message


def test_row_cap_fails_before_staging(db, service, indicator) -> None:
    lines = ["reportedAt,value"] + [f"2026-01-{day:02d},{day}" for day in range(1, 8)]
    job = _create_job(db, indicator)

    with pytest.raises(ImportSystemError) as exc_info:
        service.parse_and_stage(db=db, job_id=job.id, content="\n".join(lines).encode())

    assert exc_info.value.code == "ROW_LIMIT_EXCEEDED"
    assert "maximum row count (5 rows)" in exc_info.value.message
    assert job.status == ImportJobStatus.FAILED
    assert ImportJobRepository(db).list_rows(job.id) == []


# ---------------------------------------------------------------------------
# Validate
# ---------------------------------------------------------------------------


def test_validate_records_row_verdicts(db, service, indicator) -> None:
    job = _create_job(db, indicator)
    service.parse_and_stage(db=db, job_id=job.id, content=CSV_MIXED)

    summary = service.validate_staging_rows(db=db, job_id=job.id)

    assert (summary.valid, summary.warnings, summary.errors) == (1, 1, 1)
    assert job.status == ImportJobStatus.VALIDATED
    assert (job.processed_rows, job.successful_rows, job.failed_rows, job.warning_rows) == (3, 1, 1, 1)

    rows = ImportJobRepository(db).list_rows(job.id)
    assert rows[0].normalized_data["value"] == "50"
    assert rows[0].errors is None
    assert rows[1].errors[0]["message"] == "Value must be a number"
    assert rows[2].warnings[0]["code"] == "VALUE_TOO_HIGH"


def test_validate_again_gives_same_result(db, service, indicator) -> None:
    job = _create_job(db, indicator)
    service.parse_and_stage(db=db, job_id=job.id, content=CSV_MIXED)

    first = service.validate_staging_rows(db=db, job_id=job.id)
    second = service.validate_staging_rows(db=db, job_id=job.id)

    assert first == second
    assert job.status == ImportJobStatus.VALIDATED


def test_create_only_flags_existing_and_in_file_duplicates(db, service, indicator) -> None:
    db.add(
        Submission(
            indicator_id=indicator.id,
            reported_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            value="20",
            disaggregation_key="",
        )
    )
    db.commit()
    content = b"reportedAt,value\n2026-01-01,30\n2026-02-01,40\n2026-02-01,45\n"
    job = _create_job(db, indicator)
    service.parse_and_stage(db=db, job_id=job.id, content=content)

    summary = service.validate_staging_rows(db=db, job_id=job.id)

    rows = ImportJobRepository(db).list_rows(job.id)
    assert (summary.valid, summary.errors) == (1, 2)
    assert rows[0].errors[0] == {
        "field": "reportedAt",
        "message": "Duplicate: data for 2026-01-01 already exists",
        "severity": "error",
        "code": "DUPLICATE",
        "suggestion": "Use UPSERT mode or choose a different date",
    }
    assert rows[1].validation_status == RowValidationStatus.VALID
    assert rows[2].errors[0]["code"] == "DUPLICATE"


def test_invalid_row_does_not_claim_its_date(db, service, indicator) -> None:
    job = _create_job(db, indicator)
    service.parse_and_stage(db=db, job_id=job.id, content=b"reportedAt,value\n2026-01-01,abc\n2026-01-01,42\n")

    summary = service.validate_staging_rows(db=db, job_id=job.id)

    rows = ImportJobRepository(db).list_rows(job.id)
    assert (summary.valid, summary.errors) == (1, 1)
    assert [row.validation_status for row in rows] == [RowValidationStatus.ERROR, RowValidationStatus.VALID]
    assert [issue["code"] for issue in rows[0].errors] == ["INVALID_VALUE"]
    assert rows[1].errors is None


# ---------------------------------------------------------------------------
# Commit and rollback
# ---------------------------------------------------------------------------


def test_commit_writes_committable_rows(db, service, indicator) -> None:
    job = _create_job(db, indicator)
    service.parse_and_stage(db=db, job_id=job.id, content=CSV_MIXED)
    service.validate_staging_rows(db=db, job_id=job.id)

    summary = service.commit_to_database(db=db, job_id=job.id)

    assert summary.imported == 2
    assert summary.anomalies == 1
    assert job.status == ImportJobStatus.COMPLETED
    assert job.completed_at is not None

    submissions = db.scalars(select(Submission).order_by(Submission.reported_at)).all()
    assert [item.value for item in submissions] == ["50", "500"]
    assert all(item.source_import_job_id == job.id for item in submissions)
    assert all(item.created_by_user_id == "user-1" for item in submissions)
    assert submissions[0].is_anomaly is False
    assert submissions[1].is_anomaly is True
    assert submissions[1].anomaly_reason == "Value exceeds expected maximum (100)"
    assert submissions[1].anomaly_status == "DETECTED"

    counts = ImportJobRepository(db).count_rows_by_status(job.id)
    assert counts == {RowValidationStatus.IMPORTED: 2, RowValidationStatus.ERROR: 1}


def test_commit_requires_validated_job(db, service, indicator) -> None:
    job = _create_job(db, indicator)

    with pytest.raises(ValidationError) as exc_info:
        service.commit_to_database(db=db, job_id=job.id)

    assert exc_info.value.code == "INVALID_JOB_STATE"
    assert _submission_count(db) == 0


def test_upsert_overwrites_existing_submission(db, service, indicator) -> None:
    existing = Submission(
        indicator_id=indicator.id,
        reported_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        value="5",
        disaggregation_key="",
    )
    db.add(existing)
    db.commit()
    content = b"reportedAt,value\n2026-01-01,60\n2026-02-01,70\n"
    job = _create_job(db, indicator, import_mode=ImportMode.UPSERT)
    service.parse_and_stage(db=db, job_id=job.id, content=content)
    service.validate_staging_rows(db=db, job_id=job.id)

    summary = service.commit_to_database(db=db, job_id=job.id)

    assert summary.imported == 2
    assert summary.anomalies == 0
    assert _submission_count(db) == 2
    assert existing.value == "60"
    assert existing.source_import_job_id == job.id


def test_rollback_deletes_imported_submissions(db, service, indicator) -> None:
    job = _create_job(db, indicator)
    service.parse_and_stage(db=db, job_id=job.id, content=CSV_MIXED)
    service.validate_staging_rows(db=db, job_id=job.id)
    service.commit_to_database(db=db, job_id=job.id)

    deleted = service.rollback_import(db=db, job_id=job.id)

    assert deleted == 2
    assert _submission_count(db) == 0
    assert job.status == ImportJobStatus.CANCELLED
    assert service.rollback_import(db=db, job_id=job.id) == 0


def test_failed_commit_batch_keeps_earlier_batches(db, service, indicator) -> None:
    content = b"reportedAt,value\n2026-01-01,20\n2026-02-01,30\n2026-03-01,40\n2026-04-01,50\n"
    job = _create_job(db, indicator)
    service.parse_and_stage(db=db, job_id=job.id, content=content)
    service.validate_staging_rows(db=db, job_id=job.id)
    # Written after validation so the second commit batch hits the unique key.
    db.add(
        Submission(
            indicator_id=indicator.id,
            reported_at=datetime(2026, 4, 1, tzinfo=timezone.utc),
            value="99",
            disaggregation_key="",
        )
    )
    db.commit()

    with pytest.raises(ImportSystemError) as exc_info:
        service.commit_to_database(db=db, job_id=job.id)

    assert exc_info.value.code == "COMMIT_FAILED"
    assert _submission_count(db) == 3
    imported = db.scalars(
        select(Submission.value).where(Submission.source_import_job_id == job.id).order_by(Submission.reported_at)
    ).all()
    assert imported == ["20", "30"]

    repository = ImportJobRepository(db)
    failed_job = repository.get_job(job.id)
    assert failed_job.status == ImportJobStatus.FAILED
    assert failed_job.error_message == "Failed to import rows 4-5."
    assert repository.count_rows_by_status(job.id) == {
        RowValidationStatus.IMPORTED: 2,
        RowValidationStatus.VALID: 2,
    }


def test_same_csv_staged_into_two_jobs(db, service, indicator) -> None:
    first = _create_job(db, indicator)
    second = _create_job(db, indicator)

    first_stage = service.parse_and_stage(db=db, job_id=first.id, content=CSV_MIXED)
    second_stage = service.parse_and_stage(db=db, job_id=second.id, content=CSV_MIXED)
    first_summary = service.validate_staging_rows(db=db, job_id=first.id)
    second_summary = service.validate_staging_rows(db=db, job_id=second.id)

    repository = ImportJobRepository(db)
    assert first.id != second.id
    assert first_stage.total_rows == second_stage.total_rows == 3
    assert first_summary == second_summary
    assert [row.row_number for row in repository.list_rows(first.id)] == [2, 3, 4]
    assert [row.row_number for row in repository.list_rows(second.id)] == [2, 3, 4]
    assert {row.job_id for row in repository.list_rows(second.id)} == {second.id}
