"""
app/services/submission_service.py

Service layer for direct submissions, anomaly review and indicator-level
statistics.

create_submission runs: indicator lookup -> date parse -> value
normalization -> disaggregation check -> anomaly detection over the trailing
window -> insert. The anomaly verdict is computed once here and persisted;
reads never recompute it, and only the review operations change
``anomaly_status``.
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from anomaly.config import history_window
from anomaly.detector import NUMERIC_DATA_TYPES, detect_anomaly_for_new_value, to_float
from app import failure_codes as codes
from app.config import ReportingGapSettings, get_reporting_gap_settings
from app.domain.indicator import IndicatorRules
from app.domain.submission import IndicatorStatistics
from app.errors import ConflictError, NotFoundError, ValidationError
from app.logging_utils import log_event
from app.repositories.indicator_repository import IndicatorRepository
from app.repositories.submission_repository import SubmissionRepository
from app.schemas.submission import SubmissionCreate
from app.services.category_statistics import (
    get_category_distribution,
    get_most_frequent_category,
)
from app.services.submission_normalizer import SubmissionNormalizer
from app.validators.categorical_validator import validate_disaggregation_key
from app.validators.timestamps import parse_reported_at
from db.models.indicator import Indicator
from db.models.submission import AnomalyStatus, Submission
from reporting.gap_detector import ReportingGap, ReportingGapDetector

logger = logging.getLogger(__name__)

# Share of consecutive moves in one direction that counts as a trend.
_TREND_SHARE = 0.6


class SubmissionService:
    """
    Coordinates submission writes, anomaly review transitions and queries.
    The caller owns the session lifecycle; this service commits its writes.
    """

    def __init__(
        self,
        *,
        gap_settings: ReportingGapSettings | None = None,
        normalizer: SubmissionNormalizer | None = None,
    ) -> None:
        settings = gap_settings or ReportingGapSettings()
        self._gap_detector = ReportingGapDetector(
            expected_interval_days=settings.expected_interval_days,
            tolerance_multiplier=settings.tolerance_multiplier,
        )
        self._normalizer = normalizer or SubmissionNormalizer()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_submission(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID,
        payload: SubmissionCreate | Mapping[str, Any],
        user_id: str | None = None,
    ) -> Submission:
        indicator = self._require_indicator(db, indicator_id)
        rules = IndicatorRules.from_model(indicator)
        data = self._coerce_payload(payload)

        reported_at = parse_reported_at(data.reported_at)
        if reported_at is None:
            raise ValidationError(codes.INVALID_DATE, "Invalid date value")

        normalized = self._normalizer.normalize(rules, data.value)
        disaggregation_key = (data.disaggregation_key or "").strip()
        if rules.is_categorical:
            validate_disaggregation_key(disaggregation_key, rules.category_config)

        repository = SubmissionRepository(db)
        recent_values: list[str] = []
        if rules.anomaly_config.enabled and rules.data_type in NUMERIC_DATA_TYPES:
            recent_values = repository.recent_values(
                indicator_id=indicator.id,
                before=reported_at,
                limit=history_window(rules.anomaly_config),
                disaggregation_key=disaggregation_key,
            )
        assessment = detect_anomaly_for_new_value(
            data_type=rules.data_type,
            new_value=normalized.value,
            recent_values=[to_float(value) for value in recent_values],
            config=rules.anomaly_config,
            min_value=rules.min_value,
            max_value=rules.max_value,
        )

        submission = Submission(
            indicator_id=indicator.id,
            reported_at=reported_at,
            value=normalized.value,
            category_value=normalized.category_value,
            disaggregation_key=disaggregation_key,
            evidence=data.evidence,
            created_by_user_id=user_id,
            is_anomaly=assessment.is_anomaly,
            anomaly_reason=assessment.reason,
            anomaly_status=AnomalyStatus.DETECTED if assessment.is_anomaly else None,
        )
        repository.add(submission)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError(
                codes.DUPLICATE_SUBMISSION,
                "A submission already exists for this indicator, date and disaggregation",
            ) from exc

        if assessment.is_anomaly:
            log_event(
                logger,
                logging.INFO,
                "submission_anomaly_detected",
                indicator_id=str(indicator.id),
                submission_id=str(submission.id),
                reason=assessment.reason,
            )
        return submission

    def update_anomaly_status(
        self,
        *,
        db: Session,
        submission_id: uuid.UUID,
        status: str,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> Submission:
        if status not in AnomalyStatus.ALL:
            allowed = ", ".join(sorted(AnomalyStatus.ALL))
            raise ValidationError(
                codes.INVALID_ANOMALY_STATUS,
                f"Invalid anomaly status '{status}'. Allowed values: {allowed}.",
            )

        submission = SubmissionRepository(db).get(submission_id)
        if submission is None:
            raise NotFoundError(codes.SUBMISSION_NOT_FOUND, "Submission not found")
        if not submission.is_anomaly:
            raise ValidationError(codes.NOT_ANOMALY, "Submission is not flagged as an anomaly")

        previous_status = submission.anomaly_status
        submission.anomaly_status = status
        submission.anomaly_reviewed_by = user_id
        submission.anomaly_reviewed_at = datetime.now(timezone.utc)
        if notes is not None:
            submission.anomaly_notes = notes
        db.commit()

        log_event(
            logger,
            logging.INFO,
            "submission_anomaly_reviewed",
            submission_id=str(submission.id),
            previous_status=previous_status,
            status=status,
            reviewed_by=user_id,
        )
        return submission

    def acknowledge_anomaly(
        self,
        *,
        db: Session,
        submission_id: uuid.UUID,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> Submission:
        return self.update_anomaly_status(
            db=db,
            submission_id=submission_id,
            status=AnomalyStatus.ACKNOWLEDGED,
            user_id=user_id,
            notes=notes,
        )

    def resolve_anomaly(
        self,
        *,
        db: Session,
        submission_id: uuid.UUID,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> Submission:
        return self.update_anomaly_status(
            db=db,
            submission_id=submission_id,
            status=AnomalyStatus.RESOLVED,
            user_id=user_id,
            notes=notes,
        )

    def mark_anomaly_false_positive(
        self,
        *,
        db: Session,
        submission_id: uuid.UUID,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> Submission:
        return self.update_anomaly_status(
            db=db,
            submission_id=submission_id,
            status=AnomalyStatus.FALSE_POSITIVE,
            user_id=user_id,
            notes=notes,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_submissions(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID,
        start: Any = None,
        end: Any = None,
    ) -> list[Submission]:
        """Newest first, with anomaly fields exactly as persisted."""
        self._require_indicator(db, indicator_id)
        return SubmissionRepository(db).list_for_indicator(
            indicator_id,
            start=self._parse_bound(start),
            end=self._parse_bound(end),
        )

    def get_reporting_gaps(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID,
        cadence: str,
    ) -> list[ReportingGap]:
        self._require_indicator(db, indicator_id)
        submissions = SubmissionRepository(db).list_for_indicator(indicator_id, newest_first=False)
        return self._gap_detector.detect(submissions, cadence)

    def get_indicator_statistics(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID,
    ) -> IndicatorStatistics | None:
        """None when the indicator has no submissions yet."""
        indicator = self._require_indicator(db, indicator_id)
        submissions = SubmissionRepository(db).list_for_indicator(indicator_id)
        if not submissions:
            return None

        anomaly_count = sum(1 for submission in submissions if submission.is_anomaly)
        base: dict[str, Any] = {
            "submission_count": len(submissions),
            "anomaly_count": anomaly_count,
            "anomaly_rate": anomaly_count / len(submissions) * 100,
            "last_submission_date": submissions[0].reported_at,
        }

        if indicator.data_type == "CATEGORICAL":
            rules = IndicatorRules.from_model(indicator)
            if not rules.categories:
                return IndicatorStatistics(**base)
            return IndicatorStatistics(
                **base,
                category_distribution=get_category_distribution(submissions, rules.categories),
                most_frequent=get_most_frequent_category(submissions, rules.categories),
            )

        numeric = [
            number
            for number in (to_float(submission.value) for submission in submissions)
            if math.isfinite(number)
        ]
        if not numeric:
            return IndicatorStatistics(**base)

        current_value = numeric[0]
        return IndicatorStatistics(
            **base,
            current_value=current_value,
            average=sum(numeric) / len(numeric),
            min_value=min(numeric),
            max_value=max(numeric),
            trend=_trend_direction(list(reversed(numeric))),
            progress_to_target=(
                current_value / indicator.target_value * 100 if indicator.target_value else None
            ),
            progress_from_baseline=(
                current_value - indicator.baseline_value if indicator.baseline_value else None
            ),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_indicator(self, db: Session, indicator_id: uuid.UUID) -> Indicator:
        indicator = IndicatorRepository(db).get(indicator_id)
        if indicator is None:
            raise NotFoundError(codes.INDICATOR_NOT_FOUND, "Indicator not found")
        return indicator

    @staticmethod
    def _coerce_payload(payload: SubmissionCreate | Mapping[str, Any]) -> SubmissionCreate:
        if isinstance(payload, SubmissionCreate):
            return payload
        try:
            return SubmissionCreate.model_validate(dict(payload))
        except PydanticValidationError as exc:
            first = exc.errors()[0] if exc.errors() else {}
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(
                codes.INVALID_PAYLOAD,
                f"Invalid submission payload at '{location}': {first.get('msg', 'invalid')}",
            ) from exc

    @staticmethod
    def _parse_bound(value: Any) -> datetime | None:
        if value is None or value == "":
            return None
        parsed = parse_reported_at(value)
        if parsed is None:
            raise ValidationError(codes.INVALID_DATE, "Invalid date value")
        return parsed


def _trend_direction(values: list[float]) -> str | None:
    """Direction of chronological ``values``; None below three points."""
    if len(values) < 3:
        return None
    increases = sum(1 for previous, current in zip(values, values[1:]) if current > previous)
    decreases = sum(1 for previous, current in zip(values, values[1:]) if current < previous)
    steps = len(values) - 1
    if increases / steps > _TREND_SHARE:
        return "increasing"
    if decreases / steps > _TREND_SHARE:
        return "decreasing"
    return "stable"


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_submission_service() -> SubmissionService:
    """
    Build and cache the submission service with env-driven settings.
    """
    return SubmissionService(gap_settings=get_reporting_gap_settings())
