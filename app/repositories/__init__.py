"""
app/repositories package marker.
"""

from app.repositories.import_template_repository import ImportTemplateRepository
from app.repositories.indicator_repository import IndicatorRepository
from app.repositories.submission_repository import SubmissionRepository

__all__ = [
    "ImportTemplateRepository",
    "IndicatorRepository",
    "SubmissionRepository",
]
