"""Validation module for overlap detection and assignment checks."""

from fmscheduler.validation.overlap import OverlapDetector
from fmscheduler.validation.validator import (
    AssignmentValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "AssignmentValidator",
    "OverlapDetector",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
