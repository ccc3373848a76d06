"""
anomaly/detector.py

Range and series anomaly assessment for indicator submissions.

Range mode is the fallback whenever series detection is disabled or the
indicator is not numeric. Series mode scores every point of a chronological
sequence using only the points strictly before it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from anomaly.config import AnomalyConfig, history_window, merge_anomaly_config
from anomaly.outlier import BaseOutlierCheck, build_outlier_check
from anomaly.statistics import format_number
from anomaly.trend import BaseTrendCheck, build_trend_check

NUMBER = "NUMBER"
PERCENT = "PERCENT"
NUMERIC_DATA_TYPES = frozenset({NUMBER, PERCENT})

REASON_SEPARATOR = " | "


@dataclass(frozen=True)
class AnomalyAssessment:
    is_anomaly: bool = False
    reason: str | None = None


NOT_ANOMALOUS = AnomalyAssessment()


def to_float(value: object) -> float:
    """Best-effort float conversion; anything unparseable becomes NaN."""
    if isinstance(value, bool) or value is None:
        return math.nan
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return math.nan


def assess_range(
    data_type: str,
    value: object,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> AnomalyAssessment:
    """
    Flag NUMBER values outside the configured bounds and PERCENT values
    outside ``[min or 0, max or 100]``. Other types are never anomalous.
    """

    if data_type not in NUMERIC_DATA_TYPES:
        return NOT_ANOMALOUS
    number = to_float(value)
    if not math.isfinite(number):
        return NOT_ANOMALOUS

    if data_type == NUMBER:
        if min_value is not None and number < min_value:
            return AnomalyAssessment(
                True, f"Value below expected minimum ({format_number(min_value)})"
            )
        if max_value is not None and number > max_value:
            return AnomalyAssessment(
                True, f"Value exceeds expected maximum ({format_number(max_value)})"
            )
        return NOT_ANOMALOUS

    lower = 0.0 if min_value is None else min_value
    upper = 100.0 if max_value is None else max_value
    if number < lower or number > upper:
        return AnomalyAssessment(
            True,
            f"Percent must be between {format_number(lower)} and {format_number(upper)}",
        )
    return NOT_ANOMALOUS


class SeriesAnomalyDetector:
    """
    Applies one outlier check and one trend check to every point of a series.
    """

    def __init__(self, config: AnomalyConfig) -> None:
        self._config = config
        self._outlier: BaseOutlierCheck = build_outlier_check(config.outlier)
        self._trend: BaseTrendCheck = build_trend_check(config.trend)

    def assess(self, values: Sequence[float]) -> list[AnomalyAssessment]:
        series = np.asarray([to_float(value) for value in values], dtype=np.float64)
        return [self._assess_point(series, index) for index in range(series.size)]

    def assess_last(self, values: Sequence[float]) -> AnomalyAssessment:
        series = np.asarray([to_float(value) for value in values], dtype=np.float64)
        if series.size == 0:
            return NOT_ANOMALOUS
        return self._assess_point(series, series.size - 1)

    def _assess_point(self, series: np.ndarray, index: int) -> AnomalyAssessment:
        value = float(series[index])
        if not math.isfinite(value):
            return NOT_ANOMALOUS

        reasons = [
            reason
            for reason in (
                self._outlier_reason(series, index, value),
                self._trend_reason(series, index),
            )
            if reason
        ]
        if not reasons:
            return NOT_ANOMALOUS
        return AnomalyAssessment(True, REASON_SEPARATOR.join(reasons))

    def _outlier_reason(self, series: np.ndarray, index: int, value: float) -> str | None:
        outlier = self._config.outlier
        window = series[max(0, index - outlier.window_size):index]
        window = window[np.isfinite(window)]
        if window.size < outlier.min_points:
            return None
        return self._outlier.evaluate(window, value)

    def _trend_reason(self, series: np.ndarray, index: int) -> str | None:
        size = self._config.trend.window_size
        if index < 2 * size - 1:
            return None
        current = series[index - size + 1:index + 1]
        previous = series[index - 2 * size + 1:index - size + 1]
        if not (np.isfinite(current).all() and np.isfinite(previous).all()):
            return None
        return self._trend.evaluate(previous, current)


def assess_series(
    values: Sequence[float],
    config: AnomalyConfig | None = None,
) -> list[AnomalyAssessment]:
    """One assessment per point, each computed without lookahead."""
    return SeriesAnomalyDetector(config or merge_anomaly_config(None)).assess(values)


def detect_anomaly_for_new_value(
    *,
    data_type: str,
    new_value: object,
    recent_values: Sequence[float] = (),
    config: AnomalyConfig | None = None,
    min_value: float | None = None,
    max_value: float | None = None,
) -> AnomalyAssessment:
    """
    Score ``new_value`` against the chronological ``recent_values`` that
    precede it. Only the trailing ``history_window(config)`` values are used.
    """

    config = config or merge_anomaly_config(None)
    if not config.enabled or data_type not in NUMERIC_DATA_TYPES:
        return assess_range(data_type, new_value, min_value=min_value, max_value=max_value)

    trailing = list(recent_values)[-history_window(config):] if recent_values else []
    return SeriesAnomalyDetector(config).assess_last([*trailing, new_value])
