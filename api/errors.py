"""
Application error taxonomy.

Every error a route handler can surface deliberately lives here;
``Validate.handle_error`` maps each kind to an HTTP response.
"""

from __future__ import annotations

from typing import List

from utils.schemas import ValidationIssue


class AppError(Exception):
    """Base class for errors with a known HTTP mapping."""


class InvalidSessionError(AppError):
    def __init__(self, message: str = "Invalid Session") -> None:
        super().__init__(message)


class AccessDeniedError(AppError):
    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class ResourceNotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class CollectionAlreadyExistsError(AppError):
    """A resource with the same unique key already exists."""


class SchemaValidationError(AppError):
    """Request data failed schema validation."""

    def __init__(self, issues: List[ValidationIssue]) -> None:
        self.issues = list(issues)
        super().__init__(f"{len(self.issues)} validation issue(s)")


class UnclassifiedError(AppError):
    """Anything without a more specific mapping; always surfaces as a 500."""
