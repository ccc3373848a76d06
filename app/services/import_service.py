"""
app/services/import_service.py

Three-phase CSV import for indicator submissions.

    1. parse_and_stage()       - decode the upload and stage raw rows
    2. validate_staging_rows() - template transforms + row validation
    3. commit_to_database()    - write eligible rows as submissions

Every phase commits per batch so progress counters are visible while a job
runs. Row-level problems are recorded on the staged row; file-level and
persistence failures mark the job FAILED and raise.
"""

from __future__ import annotations

import csv
import io
import logging
import uuid
from datetime import datetime
from functools import lru_cache
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from anomaly.detector import assess_range
from app import failure_codes as codes
from app.config import ImportPipelineSettings, get_import_pipeline_settings
from app.domain.import_row import (
    CommitSummary,
    RowIssue,
    StageSummary,
    ValidationSummary,
)
from app.domain.indicator import IndicatorRules
from app.errors import ImportSystemError, NotFoundError, ValidationError
from app.logging_utils import log_event
from app.mappers.template_mapper import TemplateMapper
from app.repositories.import_template_repository import ImportTemplateRepository
from app.repositories.indicator_repository import IndicatorRepository
from app.repositories.submission_repository import SubmissionRepository
from app.validators.import_row_validator import ImportRowValidator
from app.validators.timestamps import parse_reported_at
from db.models.import_job import (
    ImportJob,
    ImportJobRow,
    ImportJobStatus,
    ImportMode,
    RowValidationStatus,
)
from db.models.indicator import Indicator
from db.models.submission import AnomalyStatus, Submission
from db.repositories.import_job_repository import ImportJobRepository

logger = logging.getLogger(__name__)

DUPLICATE_SUGGESTION = "Use UPSERT mode or choose a different date"


class ImportService:
    """
    Runs the stage / validate / commit phases for one import job at a time.
    The caller owns the session; this service commits its own batches.
    """

    def __init__(
        self,
        *,
        settings: ImportPipelineSettings | None = None,
        validator: ImportRowValidator | None = None,
    ) -> None:
        self._settings = settings or ImportPipelineSettings()
        self._validator = validator or ImportRowValidator()

    # ------------------------------------------------------------------
    # Phase 1: stage
    # ------------------------------------------------------------------

    def parse_and_stage(self, *, db: Session, job_id: uuid.UUID, content: bytes) -> StageSummary:
        """
        Parse the CSV bytes and stage one ``ImportJobRow`` per non-blank line.

        The row cap is enforced before any row is written.
        """

        repository = ImportJobRepository(db)
        job = self._require_job(repository, job_id)
        if job.status != ImportJobStatus.PENDING:
            raise ValidationError(
                codes.INVALID_JOB_STATE,
                f"Import job must be {ImportJobStatus.PENDING} to stage rows (current: {job.status})",
            )

        raw_rows = self._read_rows(db=db, repository=repository, job=job, content=content)

        self._ensure_transition(job, ImportJobStatus.VALIDATING)
        repository.mark_validating(job, total_rows=len(raw_rows))
        db.commit()

        batch_size = self._settings.stage_batch_size
        for start in range(0, len(raw_rows), batch_size):
            batch = [
                ImportJobRow(
                    job_id=job.id,
                    row_number=index + 2,
                    raw_data=raw_row,
                    validation_status=RowValidationStatus.PENDING,
                )
                for index, raw_row in enumerate(raw_rows[start : start + batch_size], start=start)
            ]
            try:
                repository.add_rows(batch)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                self._fail_after_rollback(
                    db=db,
                    repository=repository,
                    job_id=job.id,
                    message="Failed to stage CSV rows.",
                )
                raise ImportSystemError(codes.STAGING_FAILED, "Failed to stage CSV rows.") from exc

        log_event(
            logger,
            logging.INFO,
            "import_rows_staged",
            job_id=str(job.id),
            total_rows=len(raw_rows),
        )
        return StageSummary(job_id=job.id, total_rows=len(raw_rows))

    def _read_rows(
        self,
        *,
        db: Session,
        repository: ImportJobRepository,
        job: ImportJob,
        content: bytes,
    ) -> list[dict[str, str]]:
        max_rows = self._settings.max_rows
        rows: list[dict[str, str]] = []
        try:
            text = content.decode("utf-8-sig")
            if not text.strip():
                self._fail_job(db=db, repository=repository, job=job, message="CSV file is empty.")
                raise ValidationError(codes.EMPTY_FILE, "CSV file is empty.")

            reader = csv.DictReader(io.StringIO(text, newline=""))
            headers = [header for header in (reader.fieldnames or []) if header and header.strip()]
            if not headers:
                self._fail_job(db=db, repository=repository, job=job, message="CSV header row is missing.")
                raise ValidationError(codes.MISSING_HEADER, "CSV header row is missing.")

            for raw_row in reader:
                row = {
                    str(key): "" if value is None else str(value)
                    for key, value in raw_row.items()
                    if key is not None
                }
                if all(not value.strip() for value in row.values()):
                    continue
                rows.append(row)
                if len(rows) > max_rows:
                    message = (
                        f"CSV exceeds maximum row count ({max_rows:,} rows). "
                        "Split the file and import it in parts."
                    )
                    self._fail_job(db=db, repository=repository, job=job, message=message)
                    raise ImportSystemError(codes.ROW_LIMIT_EXCEEDED, message)
        except UnicodeDecodeError as exc:
            self._fail_job(db=db, repository=repository, job=job, message="CSV must be UTF-8 encoded.")
            raise ImportSystemError(codes.CSV_PARSE_FAILED, "CSV must be UTF-8 encoded.") from exc
        except csv.Error as exc:
            message = f"Invalid CSV format: {exc}"
            self._fail_job(db=db, repository=repository, job=job, message=message)
            raise ImportSystemError(codes.CSV_PARSE_FAILED, message) from exc
        return rows

    # ------------------------------------------------------------------
    # Phase 2: validate
    # ------------------------------------------------------------------

    def validate_staging_rows(self, *, db: Session, job_id: uuid.UUID) -> ValidationSummary:
        """
        Transform and validate every staged row, replacing any previous
        verdicts. Calling it again on a VALIDATED job re-derives the same
        statuses.
        """

        repository = ImportJobRepository(db)
        job = self._require_job(repository, job_id)
        if job.status == ImportJobStatus.VALIDATED:
            self._ensure_transition(job, ImportJobStatus.VALIDATING)
            job.status = ImportJobStatus.VALIDATING
        elif job.status != ImportJobStatus.VALIDATING:
            raise ValidationError(
                codes.INVALID_JOB_STATE,
                f"Import job cannot be validated in status {job.status}",
            )

        indicator = self._require_indicator(db, job)
        rules = IndicatorRules.from_model(indicator)
        mapper = self._resolve_mapper(db, job)
        submissions = SubmissionRepository(db)

        rows = repository.list_rows(job.id)
        seen_keys: set[tuple[datetime, str]] = set()
        valid = warnings = errors = 0
        batch_size = self._settings.validate_batch_size

        for start in range(0, len(rows), batch_size):
            batch = rows[start : start + batch_size]
            for row in batch:
                transformed = mapper.transform_row(row.raw_data or {})
                submitted_date = transformed.get("reportedAt")
                result = self._validator.validate(transformed, rules)

                if job.import_mode == ImportMode.CREATE_ONLY and result.reported_at is not None:
                    key = (result.reported_at, result.disaggregation_key)
                    duplicate = key in seen_keys or submissions.exists(
                        indicator_id=indicator.id,
                        reported_at=result.reported_at,
                        disaggregation_key=result.disaggregation_key,
                    )
                    # Only rows that will be committed claim their key.
                    if not duplicate and not result.errors:
                        seen_keys.add(key)
                    if duplicate:
                        result.errors.append(
                            RowIssue(
                                field="reportedAt",
                                message=f"Duplicate: data for {submitted_date} already exists",
                                code=codes.DUPLICATE,
                                suggestion=DUPLICATE_SUGGESTION,
                            )
                        )

                row.normalized_data = result.normalized
                row.validation_status = result.status
                row.errors = [issue.to_dict() for issue in result.errors] or None
                row.warnings = [issue.to_dict() for issue in result.warnings] or None

                if result.status == RowValidationStatus.VALID:
                    valid += 1
                elif result.status == RowValidationStatus.WARNING:
                    warnings += 1
                else:
                    errors += 1
                    if self._settings.log_validation_errors:
                        logger.warning(
                            "Import row invalid job=%s row=%s errors=%s",
                            job.id,
                            row.row_number,
                            "; ".join(f"{issue.field}: {issue.message}" for issue in result.errors),
                        )

            repository.update_progress(
                job,
                processed_rows=start + len(batch),
                successful_rows=valid,
                failed_rows=errors,
                warning_rows=warnings,
            )
            self._commit_or_fail(
                db=db,
                repository=repository,
                job_id=job.id,
                code=codes.VALIDATION_FAILED,
                message="Failed to store row validation results.",
            )

        self._ensure_transition(job, ImportJobStatus.VALIDATED)
        job.status = ImportJobStatus.VALIDATED
        db.commit()

        summary = ValidationSummary(valid=valid, warnings=warnings, errors=errors)
        log_event(
            logger,
            logging.INFO,
            "import_rows_validated",
            job_id=str(job.id),
            valid=valid,
            warnings=warnings,
            errors=errors,
        )
        return summary

    # ------------------------------------------------------------------
    # Phase 3: commit
    # ------------------------------------------------------------------

    def commit_to_database(self, *, db: Session, job_id: uuid.UUID) -> CommitSummary:
        """
        Write VALID and WARNING rows as submissions, one transaction per
        batch. A failed batch is rolled back; earlier batches stay written.
        """

        repository = ImportJobRepository(db)
        job = self._require_job(repository, job_id)
        if job.status != ImportJobStatus.VALIDATED:
            raise ValidationError(
                codes.INVALID_JOB_STATE,
                f"Import job must be {ImportJobStatus.VALIDATED} to commit (current: {job.status})",
            )
        indicator = self._require_indicator(db, job)
        rules = IndicatorRules.from_model(indicator)

        self._ensure_transition(job, ImportJobStatus.IMPORTING)
        job.status = ImportJobStatus.IMPORTING
        db.commit()
        log_event(logger, logging.INFO, "import_commit_started", job_id=str(job.id))

        rows = repository.list_rows(job.id, statuses=RowValidationStatus.COMMITTABLE)
        submissions = SubmissionRepository(db)
        written: dict[tuple[datetime, str], Submission] = {}
        imported = anomalies = 0
        batch_size = self._settings.commit_batch_size

        for start in range(0, len(rows), batch_size):
            batch = rows[start : start + batch_size]
            batch_anomalies = 0
            for row in batch:
                submission, created = self._write_submission(
                    submissions=submissions,
                    job=job,
                    indicator=indicator,
                    data=row.normalized_data or {},
                    written=written,
                )
                if created:
                    assessment = assess_range(
                        rules.data_type,
                        submission.value,
                        min_value=rules.min_value,
                        max_value=rules.max_value,
                    )
                    if assessment.is_anomaly:
                        submission.is_anomaly = True
                        submission.anomaly_reason = assessment.reason
                        submission.anomaly_status = AnomalyStatus.DETECTED
                        batch_anomalies += 1
                row.validation_status = RowValidationStatus.IMPORTED

            repository.update_progress(
                job,
                processed_rows=imported + len(batch),
                successful_rows=imported + len(batch),
                failed_rows=job.failed_rows,
                warning_rows=job.warning_rows,
            )
            self._commit_or_fail(
                db=db,
                repository=repository,
                job_id=job.id,
                code=codes.COMMIT_FAILED,
                message=f"Failed to import rows {batch[0].row_number}-{batch[-1].row_number}.",
            )
            imported += len(batch)
            anomalies += batch_anomalies

        self._ensure_transition(job, ImportJobStatus.COMPLETED)
        repository.mark_completed(job)
        db.commit()

        log_event(
            logger,
            logging.INFO,
            "import_commit_completed",
            job_id=str(job.id),
            imported=imported,
            anomalies=anomalies,
            import_mode=job.import_mode,
        )
        return CommitSummary(job_id=job.id, imported=imported, anomalies=anomalies)

    def _write_submission(
        self,
        *,
        submissions: SubmissionRepository,
        job: ImportJob,
        indicator: Indicator,
        data: dict[str, Any],
        written: dict[tuple[datetime, str], Submission],
    ) -> tuple[Submission, bool]:
        reported_at = parse_reported_at(data.get("reportedAt"))
        if reported_at is None:
            raise ValidationError(codes.INVALID_DATE, "Staged row has no valid reporting date")
        disaggregation_key = str(data.get("disaggregationKey") or "")
        value = "" if data.get("value") is None else str(data["value"])
        category_value = data.get("categoryValue")
        evidence = data.get("evidence")

        key = (reported_at, disaggregation_key)
        if job.import_mode == ImportMode.UPSERT:
            existing = written.get(key) or submissions.find_by_key(
                indicator_id=indicator.id,
                reported_at=reported_at,
                disaggregation_key=disaggregation_key,
            )
            if existing is not None:
                existing.value = value
                existing.category_value = category_value
                existing.evidence = evidence
                existing.source_import_job_id = job.id
                written[key] = existing
                return existing, False

        submission = submissions.add(
            Submission(
                indicator_id=indicator.id,
                reported_at=reported_at,
                value=value,
                category_value=category_value,
                disaggregation_key=disaggregation_key,
                evidence=evidence,
                created_by_user_id=job.user_id,
                source_import_job_id=job.id,
                is_anomaly=False,
            )
        )
        written[key] = submission
        return submission, True

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def rollback_import(self, *, db: Session, job_id: uuid.UUID) -> int:
        """
        Delete every submission written by the job and cancel it.
        Returns the number of deleted submissions.
        """

        repository = ImportJobRepository(db)
        job = self._require_job(repository, job_id)
        if job.status != ImportJobStatus.CANCELLED:
            self._ensure_transition(job, ImportJobStatus.CANCELLED)

        try:
            deleted = SubmissionRepository(db).delete_by_import_job(job.id)
            job.status = ImportJobStatus.CANCELLED
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise ImportSystemError(codes.ROLLBACK_FAILED, "Failed to roll back import.") from exc

        log_event(
            logger,
            logging.INFO,
            "import_rolled_back",
            job_id=str(job.id),
            deleted=deleted,
        )
        return deleted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_job(self, repository: ImportJobRepository, job_id: uuid.UUID) -> ImportJob:
        job = repository.get_job(job_id)
        if job is None:
            raise NotFoundError(codes.IMPORT_JOB_NOT_FOUND, "Import job not found")
        return job

    def _require_indicator(self, db: Session, job: ImportJob) -> Indicator:
        indicator = IndicatorRepository(db).get(job.indicator_id) if job.indicator_id else None
        if indicator is None:
            raise NotFoundError(codes.INDICATOR_NOT_FOUND, "Indicator required for submission import")
        return indicator

    def _resolve_mapper(self, db: Session, job: ImportJob) -> TemplateMapper:
        if job.template_id is None:
            return TemplateMapper()
        template = ImportTemplateRepository(db).get(job.template_id)
        if template is None:
            raise NotFoundError(codes.TEMPLATE_NOT_FOUND, "Import template not found")
        return TemplateMapper.from_column_mapping(template.column_mapping)

    @staticmethod
    def _ensure_transition(job: ImportJob, target: str) -> None:
        if not ImportJobStatus.can_transition(job.status, target):
            raise ValidationError(
                codes.INVALID_JOB_STATE,
                f"Invalid import job transition {job.status} -> {target}",
            )

    def _fail_job(
        self,
        *,
        db: Session,
        repository: ImportJobRepository,
        job: ImportJob,
        message: str,
    ) -> None:
        self._ensure_transition(job, ImportJobStatus.FAILED)
        repository.mark_failed(job, error_message=message)
        db.commit()
        log_event(
            logger,
            logging.WARNING,
            "import_job_failed",
            job_id=str(job.id),
            error_message=message,
        )

    def _fail_after_rollback(
        self,
        *,
        db: Session,
        repository: ImportJobRepository,
        job_id: uuid.UUID,
        message: str,
    ) -> None:
        job = repository.get_job(job_id)
        if job is None or not ImportJobStatus.can_transition(job.status, ImportJobStatus.FAILED):
            return
        try:
            self._fail_job(db=db, repository=repository, job=job, message=message)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to persist failed import job state id=%s", job_id)

    def _commit_or_fail(
        self,
        *,
        db: Session,
        repository: ImportJobRepository,
        job_id: uuid.UUID,
        code: str,
        message: str,
    ) -> None:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            self._fail_after_rollback(db=db, repository=repository, job_id=job_id, message=message)
            raise ImportSystemError(code, message) from exc


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_import_service() -> ImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    return ImportService(settings=get_import_pipeline_settings())
