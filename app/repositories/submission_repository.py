"""
app/repositories/submission_repository.py

Persistence layer for indicator submissions.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Select, delete, select
from sqlalchemy.orm import Session

from db.models.submission import Submission


class SubmissionRepository:
    """
    Lookups, range queries and batch deletes for ``Submission`` rows.
    Transaction boundaries belong to the calling service.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, submission: Submission) -> Submission:
        self._session.add(submission)
        return submission

    def get(self, submission_id: uuid.UUID) -> Submission | None:
        return self._session.get(Submission, submission_id)

    def find_by_key(
        self,
        *,
        indicator_id: uuid.UUID,
        reported_at: datetime,
        disaggregation_key: str = "",
    ) -> Submission | None:
        stmt = select(Submission).where(
            Submission.indicator_id == indicator_id,
            Submission.reported_at == reported_at,
            Submission.disaggregation_key == (disaggregation_key or ""),
        )
        return self._session.scalars(stmt.limit(1)).first()

    def exists(
        self,
        *,
        indicator_id: uuid.UUID,
        reported_at: datetime,
        disaggregation_key: str = "",
    ) -> bool:
        return (
            self.find_by_key(
                indicator_id=indicator_id,
                reported_at=reported_at,
                disaggregation_key=disaggregation_key,
            )
            is not None
        )

    def list_for_indicator(
        self,
        indicator_id: uuid.UUID,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        newest_first: bool = True,
    ) -> list[Submission]:
        stmt: Select[tuple[Submission]] = select(Submission).where(
            Submission.indicator_id == indicator_id
        )
        if start is not None:
            stmt = stmt.where(Submission.reported_at >= start)
        if end is not None:
            stmt = stmt.where(Submission.reported_at <= end)
        if newest_first:
            stmt = stmt.order_by(Submission.reported_at.desc(), Submission.created_at.desc())
        else:
            stmt = stmt.order_by(Submission.reported_at.asc(), Submission.created_at.asc())
        return list(self._session.scalars(stmt).all())

    def recent_values(
        self,
        *,
        indicator_id: uuid.UUID,
        before: datetime,
        limit: int,
        disaggregation_key: str = "",
    ) -> list[str]:
        """
        Stored values of the ``limit`` submissions reported before ``before``
        for the same disaggregation key, oldest first.
        """

        stmt = (
            select(Submission.value)
            .where(
                Submission.indicator_id == indicator_id,
                Submission.disaggregation_key == (disaggregation_key or ""),
                Submission.reported_at < before,
            )
            .order_by(Submission.reported_at.desc())
            .limit(max(0, limit))
        )
        values = list(self._session.scalars(stmt).all())
        values.reverse()
        return values

    def delete_by_import_job(self, job_id: uuid.UUID) -> int:
        stmt = delete(Submission).where(Submission.source_import_job_id == job_id)
        result: Any = self._session.execute(stmt, execution_options={"synchronize_session": False})
        return int(result.rowcount or 0)
