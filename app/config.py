"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class ImportPipelineSettings:
    """
    Runtime settings for the CSV stage/validate/commit pipeline.
    """

    max_rows: int = 100_000
    stage_batch_size: int = 500
    validate_batch_size: int = 100
    commit_batch_size: int = 500
    preview_rows: int = 10
    log_validation_errors: bool = True


@dataclass(frozen=True)
class ReportingGapSettings:
    """
    Expected reporting intervals (in days) and the tolerance applied on top.
    """

    tolerance_multiplier: float = 1.5
    expected_interval_days: dict[str, float] = field(
        default_factory=lambda: {"DAILY": 1.0, "WEEKLY": 7.0, "MONTHLY": 30.0}
    )


@lru_cache(maxsize=1)
def get_import_pipeline_settings() -> ImportPipelineSettings:
    """
    Return cached import pipeline settings from environment variables.
    """

    return ImportPipelineSettings(
        max_rows=max(1, _get_int_env("IMPORT_MAX_ROWS", 100_000)),
        stage_batch_size=max(1, _get_int_env("IMPORT_STAGE_BATCH_SIZE", 500)),
        validate_batch_size=max(1, _get_int_env("IMPORT_VALIDATE_BATCH_SIZE", 100)),
        commit_batch_size=max(1, _get_int_env("IMPORT_COMMIT_BATCH_SIZE", 500)),
        preview_rows=max(0, _get_int_env("IMPORT_PREVIEW_ROWS", 10)),
        log_validation_errors=_get_bool_env("IMPORT_LOG_VALIDATION_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_reporting_gap_settings() -> ReportingGapSettings:
    """
    Return cached reporting-gap settings from environment variables.
    """

    return ReportingGapSettings(
        tolerance_multiplier=max(1.0, _get_float_env("GAP_TOLERANCE_MULTIPLIER", 1.5)),
        expected_interval_days={
            "DAILY": max(0.5, _get_float_env("GAP_DAILY_DAYS", 1.0)),
            "WEEKLY": max(1.0, _get_float_env("GAP_WEEKLY_DAYS", 7.0)),
            "MONTHLY": max(1.0, _get_float_env("GAP_MONTHLY_DAYS", 30.0)),
        },
    )
