"""
Repository for import job lifecycle persistence and staged row access.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from db.models.import_job import (
    ImportJob,
    ImportJobRow,
    ImportJobStatus,
    ImportMode,
)


class ImportJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def create_job(
        self,
        *,
        indicator_id: uuid.UUID,
        file_name: str,
        file_size: int = 0,
        user_id: str | None = None,
        template_id: uuid.UUID | None = None,
        import_mode: str = ImportMode.CREATE_ONLY,
    ) -> ImportJob:
        job = ImportJob(
            indicator_id=indicator_id,
            template_id=template_id,
            user_id=user_id,
            file_name=file_name,
            file_size=file_size,
            import_mode=import_mode,
            status=ImportJobStatus.PENDING,
        )
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> ImportJob | None:
        return self._session.get(ImportJob, job_id)

    def list_jobs(
        self,
        *,
        indicator_id: uuid.UUID | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[ImportJob]:
        stmt: Select[tuple[ImportJob]] = select(ImportJob)

        if indicator_id is not None:
            stmt = stmt.where(ImportJob.indicator_id == indicator_id)
        if status:
            stmt = stmt.where(ImportJob.status == status)

        stmt = stmt.order_by(ImportJob.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_validating(self, job: ImportJob, *, total_rows: int) -> ImportJob:
        job.status = ImportJobStatus.VALIDATING
        job.total_rows = total_rows
        job.started_at = datetime.now(timezone.utc)
        job.error_message = None
        return job

    def update_progress(
        self,
        job: ImportJob,
        *,
        processed_rows: int,
        successful_rows: int,
        failed_rows: int,
        warning_rows: int,
    ) -> ImportJob:
        job.processed_rows = processed_rows
        job.successful_rows = successful_rows
        job.failed_rows = failed_rows
        job.warning_rows = warning_rows
        return job

    def mark_completed(self, job: ImportJob) -> ImportJob:
        job.status = ImportJobStatus.COMPLETED
        job.completed_at = datetime.now(timezone.utc)
        job.error_message = None
        return job

    def mark_failed(self, job: ImportJob, *, error_message: str) -> ImportJob:
        job.status = ImportJobStatus.FAILED
        job.completed_at = datetime.now(timezone.utc)
        job.error_message = error_message
        return job

    # ------------------------------------------------------------------
    # Staged rows
    # ------------------------------------------------------------------

    def add_rows(self, rows: Iterable[ImportJobRow]) -> None:
        self._session.add_all(list(rows))

    def list_rows(
        self,
        job_id: uuid.UUID,
        *,
        statuses: Sequence[str] | None = None,
        limit: int | None = None,
    ) -> list[ImportJobRow]:
        stmt: Select[tuple[ImportJobRow]] = select(ImportJobRow).where(
            ImportJobRow.job_id == job_id
        )
        if statuses:
            stmt = stmt.where(ImportJobRow.validation_status.in_(list(statuses)))
        stmt = stmt.order_by(ImportJobRow.row_number.asc())
        if limit is not None:
            stmt = stmt.limit(max(0, limit))
        return list(self._session.scalars(stmt).all())

    def count_rows_by_status(self, job_id: uuid.UUID) -> dict[str, int]:
        stmt = (
            select(ImportJobRow.validation_status, func.count(ImportJobRow.id))
            .where(ImportJobRow.job_id == job_id)
            .group_by(ImportJobRow.validation_status)
        )
        return {status: int(count) for status, count in self._session.execute(stmt).all()}
