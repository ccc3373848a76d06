"""
app/repositories/import_template_repository.py

Persistence layer for CSV import templates.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.import_template import ImportTemplate


class ImportTemplateRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, template_id: uuid.UUID) -> ImportTemplate | None:
        return self._session.get(ImportTemplate, template_id)

    def get_default(self, indicator_id: uuid.UUID) -> ImportTemplate | None:
        stmt = (
            select(ImportTemplate)
            .where(
                ImportTemplate.indicator_id == indicator_id,
                ImportTemplate.is_default.is_(True),
            )
            .order_by(ImportTemplate.created_at.asc())
            .limit(1)
        )
        return self._session.scalars(stmt).first()

    def list_for_indicator(self, indicator_id: uuid.UUID) -> list[ImportTemplate]:
        stmt = (
            select(ImportTemplate)
            .where(ImportTemplate.indicator_id == indicator_id)
            .order_by(ImportTemplate.is_default.desc(), ImportTemplate.name.asc())
        )
        return list(self._session.scalars(stmt).all())

    def create(
        self,
        *,
        indicator_id: uuid.UUID,
        name: str,
        column_mapping: dict[str, Any],
        description: str | None = None,
        is_default: bool = False,
        created_by_user_id: str | None = None,
    ) -> ImportTemplate:
        template = ImportTemplate(
            indicator_id=indicator_id,
            name=name,
            description=description,
            is_default=is_default,
            column_mapping=column_mapping,
            created_by_user_id=created_by_user_id,
        )
        self._session.add(template)
        self._session.flush()
        return template
