"""
app/domain/indicator.py

Validated, immutable view of the indicator fields that drive value
normalization, categorical checks and anomaly detection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from anomaly.config import AnomalyConfig, merge_anomaly_config
from app.domain.categorical import CategoryConfig, CategoryDefinition
from app.validators.categorical_validator import validate_categories, validate_category_config

CATEGORICAL = "CATEGORICAL"


@dataclass(frozen=True)
class IndicatorRules:
    data_type: str
    min_value: float | None = None
    max_value: float | None = None
    categories: tuple[CategoryDefinition, ...] = ()
    category_config: CategoryConfig = CategoryConfig()
    anomaly_config: AnomalyConfig = AnomalyConfig()

    @property
    def is_categorical(self) -> bool:
        return self.data_type == CATEGORICAL

    @classmethod
    def from_model(cls, indicator: Any) -> "IndicatorRules":
        """
        Build rules from an ``Indicator`` row. Stored categories and configs
        are re-validated so malformed JSON surfaces as a ValidationError.
        """

        categories: tuple[CategoryDefinition, ...] = ()
        if indicator.categories:
            categories = tuple(validate_categories(indicator.categories))
        category_config = CategoryConfig()
        if indicator.category_config:
            category_config = validate_category_config(indicator.category_config)

        return cls(
            data_type=indicator.data_type,
            min_value=indicator.min_value,
            max_value=indicator.max_value,
            categories=categories,
            category_config=category_config,
            anomaly_config=merge_anomaly_config(indicator.anomaly_config),
        )
