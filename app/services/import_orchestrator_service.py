"""
Orchestrator service for CSV import job creation, background commit dispatch
and lifecycle tracking.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks, UploadFile
from sqlalchemy.orm import Session, sessionmaker

from app import failure_codes as codes
from app.config import ImportPipelineSettings, get_import_pipeline_settings
from app.errors import NotFoundError, ValidationError
from app.logging_utils import log_event
from app.repositories.import_template_repository import ImportTemplateRepository
from app.repositories.indicator_repository import IndicatorRepository
from app.schemas.import_job import (
    ImportCommitAcceptedResponse,
    ImportJobStatusResponse,
    ImportRowIssue,
    ImportRowPreview,
    ImportUploadResponse,
    ImportValidationSummary,
)
from app.services.error_report import build_error_report_csv
from app.services.import_service import ImportService, get_import_service
from app.services.template_service import TemplateService, get_template_service
from db.models.import_job import ImportJob, ImportJobRow, ImportJobStatus, ImportMode, RowValidationStatus
from db.repositories.import_job_repository import ImportJobRepository

logger = logging.getLogger(__name__)


class ImportTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class InlineTaskExecutor:
    """Runs the task immediately; used by the CLI and tests."""

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        task(*args, **kwargs)


class ImportOrchestratorService:
    """
    Coordinates job creation, upload staging, background commits, and
    status reporting.
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | None = None,
        import_service: ImportService | None = None,
        template_service: TemplateService | None = None,
        settings: ImportPipelineSettings | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._import_service = import_service or get_import_service()
        self._template_service = template_service or get_template_service()
        self._settings = settings or get_import_pipeline_settings()

    def create_job(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID,
        file_name: str,
        file_size: int = 0,
        user_id: str | None = None,
        template_id: uuid.UUID | None = None,
        import_mode: str = ImportMode.CREATE_ONLY,
    ) -> ImportJob:
        """
        Create a PENDING job. Without ``template_id`` the indicator's default
        template is used, generated on first use.
        """

        if import_mode not in ImportMode.ALL:
            allowed = ", ".join(sorted(ImportMode.ALL))
            raise ValidationError(
                codes.INVALID_IMPORT_MODE,
                f"Invalid import mode '{import_mode}'. Allowed values: {allowed}.",
            )
        if IndicatorRepository(db).get(indicator_id) is None:
            raise NotFoundError(codes.INDICATOR_NOT_FOUND, "Indicator not found")

        if template_id is not None:
            template = ImportTemplateRepository(db).get(template_id)
            if template is None:
                raise NotFoundError(codes.TEMPLATE_NOT_FOUND, "Import template not found")
        else:
            template = self._template_service.get_or_create_default_import_template(
                db=db,
                indicator_id=indicator_id,
                user_id=user_id,
            )

        job = ImportJobRepository(db).create_job(
            indicator_id=indicator_id,
            file_name=file_name,
            file_size=file_size,
            user_id=user_id,
            template_id=template.id,
            import_mode=import_mode,
        )
        db.commit()
        log_event(
            logger,
            logging.INFO,
            "import_job_created",
            job_id=str(job.id),
            indicator_id=str(indicator_id),
            import_mode=import_mode,
            file_name=file_name,
        )
        return job

    def stage_and_validate(
        self,
        *,
        db: Session,
        job_id: uuid.UUID,
        content: bytes,
    ) -> ImportUploadResponse:
        self._import_service.parse_and_stage(db=db, job_id=job_id, content=content)
        summary = self._import_service.validate_staging_rows(db=db, job_id=job_id)

        repository = ImportJobRepository(db)
        job = repository.get_job(job_id)
        if job is None:
            raise NotFoundError(codes.IMPORT_JOB_NOT_FOUND, "Import job not found")
        preview_rows = repository.list_rows(job_id, limit=self._settings.preview_rows)

        return ImportUploadResponse(
            job_id=job.id,
            status=job.status,
            summary=ImportValidationSummary(
                total_rows=job.total_rows,
                valid_rows=summary.valid,
                warning_rows=summary.warnings,
                error_rows=summary.errors,
            ),
            preview=[self._to_preview(row) for row in preview_rows],
        )

    def upload(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID,
        upload_file: UploadFile,
        user_id: str | None = None,
        template_id: uuid.UUID | None = None,
        import_mode: str = ImportMode.CREATE_ONLY,
    ) -> ImportUploadResponse:
        upload_file.file.seek(0)
        content = upload_file.file.read()
        job = self.create_job(
            db=db,
            indicator_id=indicator_id,
            file_name=upload_file.filename or "upload.csv",
            file_size=len(content),
            user_id=user_id,
            template_id=template_id,
            import_mode=import_mode,
        )
        return self.stage_and_validate(db=db, job_id=job.id, content=content)

    def trigger_commit(
        self,
        *,
        db: Session,
        job_id: uuid.UUID,
        executor: ImportTaskExecutor,
    ) -> ImportCommitAcceptedResponse:
        """
        Schedule the commit phase and return without waiting for it.
        """

        repository = ImportJobRepository(db)
        job = self._require_job(repository, job_id)
        if job.status != ImportJobStatus.VALIDATED:
            raise ValidationError(
                codes.INVALID_JOB_STATE,
                f"Import job must be {ImportJobStatus.VALIDATED} to commit (current: {job.status})",
            )

        try:
            executor.submit(self._run_commit_job, job.id)
        except Exception:
            repository.mark_failed(job, error_message="Failed to schedule import commit.")
            db.commit()
            raise

        return ImportCommitAcceptedResponse(job_id=job.id, status=job.status)

    def get_job_status(self, *, db: Session, job_id: uuid.UUID) -> ImportJobStatusResponse:
        repository = ImportJobRepository(db)
        job = self._require_job(repository, job_id)
        response = ImportJobStatusResponse.model_validate(job)
        return response.model_copy(update={"row_counts": repository.count_rows_by_status(job.id)})

    def list_jobs(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[ImportJobStatusResponse]:
        repository = ImportJobRepository(db)
        jobs = repository.list_jobs(indicator_id=indicator_id, status=status, limit=limit)
        return [ImportJobStatusResponse.model_validate(job) for job in jobs]

    def cancel_import(self, *, db: Session, job_id: uuid.UUID) -> int:
        """Cancel the job, deleting any submissions it already wrote."""
        return self._import_service.rollback_import(db=db, job_id=job_id)

    def build_error_report(self, *, db: Session, job_id: uuid.UUID) -> str:
        repository = ImportJobRepository(db)
        self._require_job(repository, job_id)
        rows = repository.list_rows(job_id, statuses=[RowValidationStatus.ERROR])
        return build_error_report_csv(rows)

    def _run_commit_job(self, job_id: uuid.UUID) -> None:
        with self._session_factory() as db:
            try:
                self._import_service.commit_to_database(db=db, job_id=job_id)
            except Exception as exc:
                self._mark_job_failed(db=db, job_id=job_id, exc=exc)

    def _mark_job_failed(self, *, db: Session, job_id: uuid.UUID, exc: Exception) -> None:
        repository = ImportJobRepository(db)
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Import commit failed id=%s error=%s", job_id, error_message)
        try:
            db.rollback()
            job = repository.get_job(job_id)
            if job is None:
                logger.error("Unable to mark import job as failed because it was not found id=%s", job_id)
                return
            if job.status in (ImportJobStatus.COMPLETED, ImportJobStatus.CANCELLED):
                logger.warning("Import job already %s; keeping status id=%s", job.status, job_id)
                return
            repository.mark_failed(job, error_message=error_message[:2000])
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed import job state id=%s", job_id)

    @staticmethod
    def _require_job(repository: ImportJobRepository, job_id: uuid.UUID) -> ImportJob:
        job = repository.get_job(job_id)
        if job is None:
            raise NotFoundError(codes.IMPORT_JOB_NOT_FOUND, "Import job not found")
        return job

    @staticmethod
    def _to_preview(row: ImportJobRow) -> ImportRowPreview:
        return ImportRowPreview(
            row_number=row.row_number,
            raw_data=row.raw_data or {},
            normalized_data=row.normalized_data,
            validation_status=row.validation_status,
            errors=[ImportRowIssue(**issue) for issue in row.errors or []],
            warnings=[ImportRowIssue(**issue) for issue in row.warnings or []],
        )


@lru_cache(maxsize=1)
def get_import_orchestrator_service() -> ImportOrchestratorService:
    return ImportOrchestratorService()
