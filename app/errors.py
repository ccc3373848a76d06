"""
Service-layer exceptions for submission, anomaly and import flows.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base exception carrying a stable machine-readable code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(ServiceError):
    """Raised when caller input violates a domain rule."""


class NotFoundError(ServiceError):
    """Raised when a referenced indicator, submission, template or job is missing."""


class ConflictError(ServiceError):
    """Raised when a write collides with an existing record."""


class ImportSystemError(ServiceError):
    """Raised when the import pipeline hits a parse or persistence failure."""
