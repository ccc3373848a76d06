"""
app/schemas package marker.
"""

from app.schemas.import_job import (
    ImportCommitAcceptedResponse,
    ImportJobStatusResponse,
    ImportRowIssue,
    ImportRowPreview,
    ImportUploadResponse,
    ImportValidationSummary,
)
from app.schemas.submission import SubmissionCreate, SubmissionResponse

__all__ = [
    "ImportCommitAcceptedResponse",
    "ImportJobStatusResponse",
    "ImportRowIssue",
    "ImportRowPreview",
    "ImportUploadResponse",
    "ImportValidationSummary",
    "SubmissionCreate",
    "SubmissionResponse",
]
