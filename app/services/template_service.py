"""
app/services/template_service.py

Default CSV import templates derived from an indicator's type, categories
and disaggregation dimensions.
"""

from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from typing import Any

from sqlalchemy.orm import Session

from app import failure_codes as codes
from app.domain.indicator import IndicatorRules
from app.errors import NotFoundError
from app.repositories.import_template_repository import ImportTemplateRepository
from app.repositories.indicator_repository import IndicatorRepository
from db.models.import_template import ImportTemplate
from db.models.indicator import Indicator, IndicatorDataType

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "Default Import Template"
DEFAULT_TEMPLATE_DESCRIPTION = "Auto-generated default template"

BOOLEAN_VALUES = {
    "true": ["true", "yes", "y", "1", "on"],
    "false": ["false", "no", "n", "0", "off"],
}
TEXT_MAX_LENGTH = 1000
EVIDENCE_MAX_LENGTH = 500


class TemplateService:
    def generate_default_import_mapping(self, indicator: Indicator) -> dict[str, Any]:
        """
        Build ``{"columns": [...]}`` for the indicator: an optional
        disaggregation column (first dimension only), ``Date``, the value
        column for the data type and ``Evidence``.
        """

        rules = IndicatorRules.from_model(indicator)
        columns: list[dict[str, Any]] = []

        dimensions = rules.category_config.disaggregation_dimensions
        if dimensions:
            dimension = dimensions[0]
            columns.append(
                {
                    "csvHeader": dimension.label,
                    "fieldName": "disaggregationKey",
                    "dataType": "text",
                    "required": dimension.required,
                    "transform": {"trim": True, "allowedValues": list(dimension.values)},
                }
            )

        columns.append(
            {
                "csvHeader": "Date",
                "fieldName": "reportedAt",
                "dataType": "date",
                "required": True,
                "transform": {"dateFormat": "yyyy-MM-dd", "trim": True},
            }
        )

        value_column = self._value_column(rules)
        if value_column is not None:
            columns.append(value_column)

        columns.append(
            {
                "csvHeader": "Evidence",
                "fieldName": "evidence",
                "dataType": "text",
                "required": False,
                "transform": {"trim": True, "maxLength": EVIDENCE_MAX_LENGTH},
            }
        )
        return {"columns": columns}

    def get_or_create_default_import_template(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID,
        user_id: str | None = None,
    ) -> ImportTemplate:
        repository = ImportTemplateRepository(db)
        template = repository.get_default(indicator_id)
        if template is not None:
            return template

        indicator = IndicatorRepository(db).get(indicator_id)
        if indicator is None:
            raise NotFoundError(codes.INDICATOR_NOT_FOUND, "Indicator not found")

        template = repository.create(
            indicator_id=indicator.id,
            name=DEFAULT_TEMPLATE_NAME,
            description=DEFAULT_TEMPLATE_DESCRIPTION,
            is_default=True,
            column_mapping=self.generate_default_import_mapping(indicator),
            created_by_user_id=user_id,
        )
        db.commit()
        logger.info("Created default import template indicator=%s template=%s", indicator.id, template.id)
        return template

    @staticmethod
    def _value_column(rules: IndicatorRules) -> dict[str, Any] | None:
        if rules.data_type == IndicatorDataType.CATEGORICAL:
            if not rules.categories:
                return None
            category_mapping: dict[str, str] = {}
            for category in rules.categories:
                category_mapping[category.label] = category.id
                category_mapping[category.label.upper()] = category.id
                category_mapping[category.label.lower()] = category.id
                category_mapping[category.id] = category.id
            return {
                "csvHeader": "Category",
                "fieldName": "value",
                "dataType": "category",
                "required": True,
                "transform": {"categoryMapping": category_mapping},
            }

        if rules.data_type == IndicatorDataType.BOOLEAN:
            return {
                "csvHeader": "Value",
                "fieldName": "value",
                "dataType": "boolean",
                "required": True,
                "transform": {"trim": True, "booleanValues": BOOLEAN_VALUES},
            }

        if rules.data_type in IndicatorDataType.NUMERIC:
            return {
                "csvHeader": "Value",
                "fieldName": "value",
                "dataType": "number",
                "required": True,
                "transform": {"trim": True, "removeCommas": True},
            }

        transform: dict[str, Any] = {"trim": True}
        if rules.data_type == IndicatorDataType.TEXT:
            transform["maxLength"] = TEXT_MAX_LENGTH
        return {
            "csvHeader": "Value",
            "fieldName": "value",
            "dataType": "text",
            "required": True,
            "transform": transform,
        }


@lru_cache(maxsize=1)
def get_template_service() -> TemplateService:
    return TemplateService()
