"""
anomaly/statistics.py

Robust location/spread and slope helpers over small numeric windows.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def finite_array(values: Sequence[float]) -> np.ndarray:
    """Return the finite entries of ``values`` as a float64 array."""
    array = np.asarray(values, dtype=np.float64)
    return array[np.isfinite(array)]


def median(values: Sequence[float] | np.ndarray) -> float:
    return float(np.median(np.asarray(values, dtype=np.float64)))


def median_absolute_deviation(values: Sequence[float] | np.ndarray) -> tuple[float, float]:
    """
    Return ``(median, MAD)`` where MAD is the median of absolute deviations
    from the median (unscaled).
    """

    array = np.asarray(values, dtype=np.float64)
    centre = float(np.median(array))
    return centre, float(np.median(np.abs(array - centre)))


def quartiles(values: Sequence[float] | np.ndarray) -> tuple[float, float]:
    """
    First and third quartiles using linear interpolation at position
    ``(n - 1) * q`` of the sorted values.
    """

    array = np.asarray(values, dtype=np.float64)
    q1, q3 = np.quantile(array, [0.25, 0.75], method="linear")
    return float(q1), float(q3)


def ols_slope(values: Sequence[float] | np.ndarray) -> float:
    """
    Least-squares slope of ``values`` against ``x = 0..n-1``.

        slope = sum((x - mean_x) * (y - mean_y)) / sum((x - mean_x) ** 2)

    Returns 0.0 for fewer than two points.
    """

    y = np.asarray(values, dtype=np.float64)
    n = y.size
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=np.float64)
    dx = x - x.mean()
    denominator = float(np.dot(dx, dx))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(dx, y - y.mean()) / denominator)


def mean(values: Sequence[float] | np.ndarray) -> float:
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def format_number(value: float) -> str:
    """Render integral floats without a trailing ``.0`` (``10.0`` -> ``"10"``)."""
    if np.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return repr(float(value))
