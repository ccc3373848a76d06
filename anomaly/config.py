"""
anomaly/config.py

Anomaly detection settings stored on an indicator and merged over defaults.

Stored configs are partial: ``{"enabled": true, "outlier": {"method": "IQR"}}``
keeps every other default. Keys are accepted in camelCase (as persisted by the
indicator editor) or snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from app.errors import ValidationError
from app.failure_codes import INVALID_ANOMALY_CONFIG


class OutlierMethod:
    MAD = "MAD"
    IQR = "IQR"


class TrendMethod:
    SLOPE_SHIFT = "SLOPE_SHIFT"
    MEAN_SHIFT = "MEAN_SHIFT"


# Threshold used when a payload names a method without a threshold.
DEFAULT_OUTLIER_THRESHOLDS: dict[str, float] = {
    OutlierMethod.MAD: 3.5,
    OutlierMethod.IQR: 1.5,
}
DEFAULT_TREND_THRESHOLDS: dict[str, float] = {
    TrendMethod.SLOPE_SHIFT: 2.0,
    TrendMethod.MEAN_SHIFT: 0.3,
}


@dataclass(frozen=True)
class OutlierConfig:
    method: str = OutlierMethod.MAD
    threshold: float = 3.5
    window_size: int = 8
    min_points: int = 6


@dataclass(frozen=True)
class TrendConfig:
    method: str = TrendMethod.SLOPE_SHIFT
    threshold: float = 2.0
    window_size: int = 6


@dataclass(frozen=True)
class AnomalyConfig:
    enabled: bool = False
    outlier: OutlierConfig = OutlierConfig()
    trend: TrendConfig = TrendConfig()


DEFAULT_ANOMALY_CONFIG = AnomalyConfig()


# ---------------------------------------------------------------------------
# Inbound payload models
# ---------------------------------------------------------------------------


class _OutlierPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    method: Literal["MAD", "IQR"] | None = None
    threshold: float | None = Field(default=None, gt=0)
    window_size: int | None = Field(default=None, alias="windowSize", ge=2, le=50)
    min_points: int | None = Field(default=None, alias="minPoints", ge=2)


class _TrendPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    method: Literal["SLOPE_SHIFT", "MEAN_SHIFT"] | None = None
    threshold: float | None = Field(default=None, gt=0)
    window_size: int | None = Field(default=None, alias="windowSize", ge=3, le=50)


class AnomalyConfigPayload(BaseModel):
    """Partial anomaly config as stored on an indicator."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    enabled: bool | None = None
    outlier: _OutlierPayload | None = None
    trend: _TrendPayload | None = None


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def merge_anomaly_config(raw: Mapping[str, Any] | AnomalyConfig | None) -> AnomalyConfig:
    """
    Deep-merge a partial stored config over the defaults.

    Each nested section is merged field by field, so supplying only
    ``outlier.method`` keeps the default window and minimum points.
    Raises ValidationError(INVALID_ANOMALY_CONFIG) on malformed input.
    """

    if raw is None:
        return DEFAULT_ANOMALY_CONFIG
    if isinstance(raw, AnomalyConfig):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(INVALID_ANOMALY_CONFIG, "Anomaly config must be an object")

    try:
        payload = AnomalyConfigPayload.model_validate(dict(raw))
    except PydanticValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = first.get("msg", "invalid value")
        raise ValidationError(
            INVALID_ANOMALY_CONFIG,
            f"Invalid anomaly config at '{location}': {detail}",
        ) from exc

    defaults = DEFAULT_ANOMALY_CONFIG
    return AnomalyConfig(
        enabled=defaults.enabled if payload.enabled is None else payload.enabled,
        outlier=_merge_outlier(defaults.outlier, payload.outlier),
        trend=_merge_trend(defaults.trend, payload.trend),
    )


def _merge_outlier(base: OutlierConfig, override: _OutlierPayload | None) -> OutlierConfig:
    if override is None:
        return base
    method = override.method or base.method
    threshold = override.threshold
    if threshold is None:
        threshold = DEFAULT_OUTLIER_THRESHOLDS[method]
    return OutlierConfig(
        method=method,
        threshold=threshold,
        window_size=override.window_size or base.window_size,
        min_points=override.min_points or base.min_points,
    )


def _merge_trend(base: TrendConfig, override: _TrendPayload | None) -> TrendConfig:
    if override is None:
        return base
    method = override.method or base.method
    threshold = override.threshold
    if threshold is None:
        threshold = DEFAULT_TREND_THRESHOLDS[method]
    return TrendConfig(
        method=method,
        threshold=threshold,
        window_size=override.window_size or base.window_size,
    )


def history_window(config: AnomalyConfig) -> int:
    """Number of prior submissions needed to evaluate both checks."""
    return max(config.outlier.window_size, config.trend.window_size * 2)
