"""Validation of proposed assignments before they are committed.

This module is the single place where a proposed assignment is checked
against the provider's slots and existing bookings. Problems are collected
into a ValidationResult instead of being raised, so the calling layer
decides how to present them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from fmscheduler.domain.errors import SlotNotFoundError
from fmscheduler.domain.models import (
    AssignmentRequest,
    SelectionResult,
    WeeklySlot,
)
from fmscheduler.domain.repositories import BookingRepository, WeeklySlotRepository
from fmscheduler.validation.overlap import OverlapDetector

logger = logging.getLogger(__name__)


class ValidationErrorType(Enum):
    """Types of validation errors."""

    NO_TIME_SLOTS = "no_time_slots"
    SLOT_NOT_FOUND = "slot_not_found"
    SLOT_PROVIDER_MISMATCH = "slot_provider_mismatch"
    SLOT_INACTIVE = "slot_inactive"
    SLOT_DAY_MISMATCH = "slot_day_mismatch"
    INSUFFICIENT_SLOT_CAPACITY = "insufficient_slot_capacity"
    SLOT_OVERLAP = "slot_overlap"
    TIME_RANGE_OVERLAP = "time_range_overlap"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    slot_id: Optional[int] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]", self.message]
        if self.slot_id is not None:
            parts.append(f"(slot {self.slot_id})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating an assignment."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def has_error(self, error_type: ValidationErrorType) -> bool:
        return any(e.error_type == error_type for e in self.errors)


class AssignmentValidator:
    """Validates proposed assignments against slots and bookings.

    An assignment that fails validation must not be created or updated;
    an overlap is never resolved by shrinking or shifting the request.

    Example:
        >>> validator = AssignmentValidator(slot_repository, booking_repository)
        >>> result = validator.validate(request)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(
        self,
        slot_repository: WeeklySlotRepository,
        booking_repository: BookingRepository,
        overlap_detector: Optional[OverlapDetector] = None,
    ):
        self.slot_repository = slot_repository
        self.booking_repository = booking_repository
        self.overlap_detector = overlap_detector or OverlapDetector(
            slot_repository, booking_repository
        )

    def validate(self, request: AssignmentRequest) -> ValidationResult:
        """Validate a proposed assignment.

        Args:
            request: The assignment to check.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)

        if not request.time_slot_ids:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.NO_TIME_SLOTS,
                    message="At least one time slot must be selected",
                )
            )
            return result

        try:
            slots = self.slot_repository.slots_by_ids(request.time_slot_ids)
        except SlotNotFoundError as exc:
            for slot_id in exc.slot_ids:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SLOT_NOT_FOUND,
                        message="Time slot does not exist",
                        slot_id=slot_id,
                    )
                )
            return result

        self._validate_slots(slots, request, result)
        self._validate_duration(slots, request, result)
        self._validate_overlaps(request, result)

        if not result.is_valid:
            logger.warning(
                "Assignment for provider %s on %s rejected: %s",
                request.provider_id,
                request.scheduled_date,
                "; ".join(str(e) for e in result.errors),
            )
        return result

    def validate_selection(self, selection: SelectionResult) -> ValidationResult:
        """Turn an auto-selection outcome into warnings.

        A partial allocation stays valid but always carries a warning so
        it is never mistaken for success.
        """
        result = ValidationResult(is_valid=True)
        if not selection.fully_satisfied:
            result.add_warning(
                f"Insufficient capacity: only {selection.accumulated_minutes} of "
                f"{selection.required_minutes} minutes available within "
                f"{selection.span_days} day(s)"
            )
        if selection.is_multi_day:
            result.add_warning(
                f"Multi-day assignment: spans {selection.calendar_span_days} days "
                f"({selection.start_date:%b %d} to {selection.last_date:%b %d, %Y})"
            )
        return result

    def _validate_slots(
        self,
        slots: list[WeeklySlot],
        request: AssignmentRequest,
        result: ValidationResult,
    ) -> None:
        """Check slot ownership, active flags and weekday."""
        for slot in slots:
            if slot.provider_id != request.provider_id:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SLOT_PROVIDER_MISMATCH,
                        message=(
                            f"Time slot belongs to provider {slot.provider_id}, "
                            f"not {request.provider_id}"
                        ),
                        slot_id=slot.id,
                    )
                )
            if not slot.is_active:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SLOT_INACTIVE,
                        message="Time slot is inactive",
                        slot_id=slot.id,
                    )
                )
            if not slot.falls_on(request.scheduled_date):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SLOT_DAY_MISMATCH,
                        message=(
                            f"Time slot is for {slot.day_name}, not "
                            f"{request.scheduled_date:%A %Y-%m-%d}"
                        ),
                        slot_id=slot.id,
                    )
                )

    def _validate_duration(
        self,
        slots: list[WeeklySlot],
        request: AssignmentRequest,
        result: ValidationResult,
    ) -> None:
        """Check the selected slots can hold the allocated duration."""
        if not request.allocated_duration_minutes:
            return
        slot_minutes = sum(slot.duration_minutes for slot in slots)
        if slot_minutes < request.allocated_duration_minutes:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INSUFFICIENT_SLOT_CAPACITY,
                    message=(
                        f"Selected slots provide {slot_minutes} minutes but "
                        f"{request.allocated_duration_minutes} are required"
                    ),
                    details={
                        "slot_minutes": slot_minutes,
                        "required_minutes": request.allocated_duration_minutes,
                    },
                )
            )

    def _validate_overlaps(
        self,
        request: AssignmentRequest,
        result: ValidationResult,
    ) -> None:
        """Check the slot envelope and any manual range against bookings."""
        if self.overlap_detector.has_multi_slot_overlap(
            request.provider_id,
            request.scheduled_date,
            request.time_slot_ids,
            request.exclude_booking_id,
        ):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.SLOT_OVERLAP,
                    message="Time slots overlap with an existing assignment",
                )
            )

        manual = request.manual_range
        if manual is None:
            return
        conflicts = self.overlap_detector.find_conflicts(
            request.provider_id,
            request.scheduled_date,
            manual[0],
            manual[1],
            request.exclude_booking_id,
        )
        if conflicts:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.TIME_RANGE_OVERLAP,
                    message=(
                        f"Time range {manual[0]:%H:%M}-{manual[1]:%H:%M} overlaps "
                        f"with an existing assignment"
                    ),
                    details={"booking_ids": [b.id for b in conflicts]},
                )
            )
