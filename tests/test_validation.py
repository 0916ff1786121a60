"""Tests for assignment validation."""

from datetime import date, time

import pytest

from fmscheduler.domain.models import (
    AssignmentRequest,
    Booking,
    SelectionFragment,
    SelectionResult,
    WeeklySlot,
)
from fmscheduler.domain.repositories import (
    InMemoryBookingRepository,
    InMemorySlotRepository,
)
from fmscheduler.validation.validator import (
    AssignmentValidator,
    ValidationErrorType,
)

MONDAY = date(2024, 1, 15)


class TestAssignmentValidator:
    """Tests for AssignmentValidator.validate."""

    @pytest.fixture
    def slots(self):
        """Create slots for providers 7 and 8."""
        return InMemorySlotRepository([
            WeeklySlot(1, 7, 1, time(9), time(10)),
            WeeklySlot(2, 7, 1, time(10), time(12)),
            WeeklySlot(3, 7, 1, time(13), time(14), is_active=False),
            WeeklySlot(4, 8, 1, time(9), time(17)),
        ])

    @pytest.fixture
    def bookings(self):
        """Create a store with one booking at 15:00-16:00."""
        return InMemoryBookingRepository([Booking(10, 7, MONDAY, time(15), time(16))])

    @pytest.fixture
    def validator(self, slots, bookings):
        """Create a validator over both stores."""
        return AssignmentValidator(slots, bookings)

    def test_valid_assignment(self, validator):
        """Active slots of the provider with room are accepted."""
        request = AssignmentRequest(
            provider_id=7,
            scheduled_date=MONDAY,
            time_slot_ids=[1, 2],
            allocated_duration_minutes=150,
        )
        result = validator.validate(request)
        assert result.is_valid
        assert result.errors == []

    def test_no_slots(self, validator):
        """At least one slot is required."""
        result = validator.validate(AssignmentRequest(provider_id=7, scheduled_date=MONDAY))
        assert not result.is_valid
        assert result.has_error(ValidationErrorType.NO_TIME_SLOTS)

    def test_unknown_slot(self, validator):
        """Each unknown slot id is reported."""
        request = AssignmentRequest(provider_id=7, scheduled_date=MONDAY, time_slot_ids=[1, 98, 99])
        result = validator.validate(request)
        assert not result.is_valid
        assert [e.slot_id for e in result.errors] == [98, 99]
        assert all(e.error_type == ValidationErrorType.SLOT_NOT_FOUND for e in result.errors)

    def test_provider_mismatch(self, validator):
        """A slot of another provider is rejected."""
        request = AssignmentRequest(provider_id=7, scheduled_date=MONDAY, time_slot_ids=[4])
        result = validator.validate(request)
        assert result.has_error(ValidationErrorType.SLOT_PROVIDER_MISMATCH)

    def test_inactive_slot(self, validator):
        """An inactive slot is rejected."""
        request = AssignmentRequest(provider_id=7, scheduled_date=MONDAY, time_slot_ids=[3])
        result = validator.validate(request)
        assert result.has_error(ValidationErrorType.SLOT_INACTIVE)

    def test_slot_on_other_weekday(self, slots, bookings):
        """A slot whose weekday differs from the date is rejected."""
        slots.add(WeeklySlot(5, 7, 2, time(9), time(17)))
        bookings.add(Booking(11, 7, MONDAY, time(12), time(13)))
        validator = AssignmentValidator(slots, bookings)
        request = AssignmentRequest(provider_id=7, scheduled_date=MONDAY, time_slot_ids=[5])
        result = validator.validate(request)
        assert not result.is_valid
        assert result.has_error(ValidationErrorType.SLOT_DAY_MISMATCH)
        assert result.errors[0].slot_id == 5

    def test_insufficient_slot_capacity(self, validator):
        """Slots shorter than the allocated duration are rejected."""
        request = AssignmentRequest(
            provider_id=7,
            scheduled_date=MONDAY,
            time_slot_ids=[1],
            allocated_duration_minutes=90,
        )
        result = validator.validate(request)
        assert result.has_error(ValidationErrorType.INSUFFICIENT_SLOT_CAPACITY)
        error = result.errors[0]
        assert error.details == {"slot_minutes": 60, "required_minutes": 90}

    def test_slot_overlap(self, validator, bookings):
        """A booking inside the slot envelope is rejected."""
        bookings.add(Booking(11, 7, MONDAY, time(9, 30), time(10)))
        request = AssignmentRequest(provider_id=7, scheduled_date=MONDAY, time_slot_ids=[1, 2])
        result = validator.validate(request)
        assert result.has_error(ValidationErrorType.SLOT_OVERLAP)

    def test_slot_overlap_excluding_self(self, validator, bookings):
        """Editing the conflicting booking itself is allowed."""
        bookings.add(Booking(11, 7, MONDAY, time(9, 30), time(10)))
        request = AssignmentRequest(
            provider_id=7,
            scheduled_date=MONDAY,
            time_slot_ids=[1, 2],
            exclude_booking_id=11,
        )
        assert validator.validate(request).is_valid

    def test_manual_range_overlap(self, validator):
        """A manual override overlapping a booking is rejected."""
        request = AssignmentRequest(
            provider_id=7,
            scheduled_date=MONDAY,
            time_slot_ids=[1],
            assigned_start_time=time(15, 30),
            assigned_end_time=time(16, 30),
        )
        result = validator.validate(request)
        assert result.has_error(ValidationErrorType.TIME_RANGE_OVERLAP)
        assert result.errors[0].details == {"booking_ids": [10]}

    def test_manual_range_touching(self, validator):
        """A manual override ending at a booking's start is accepted."""
        request = AssignmentRequest(
            provider_id=7,
            scheduled_date=MONDAY,
            time_slot_ids=[1],
            assigned_start_time=time(14),
            assigned_end_time=time(15),
        )
        assert validator.validate(request).is_valid

    def test_error_string(self, validator):
        """Errors render their type and slot."""
        request = AssignmentRequest(provider_id=7, scheduled_date=MONDAY, time_slot_ids=[3])
        error = validator.validate(request).errors[0]
        assert str(error) == "[slot_inactive] Time slot is inactive (slot 3)"


class TestSelectionWarnings:
    """Tests for AssignmentValidator.validate_selection."""

    @pytest.fixture
    def validator(self):
        """Create a validator over empty stores."""
        return AssignmentValidator(InMemorySlotRepository(), InMemoryBookingRepository())

    def test_satisfied_single_day(self, validator):
        """A satisfied single-day selection has no warnings."""
        selection = SelectionResult(
            start_date=MONDAY,
            required_minutes=60,
            fragments=[SelectionFragment(1, MONDAY, time(9), time(10), 60)],
            accumulated_minutes=60,
        )
        result = validator.validate_selection(selection)
        assert result.is_valid
        assert result.warnings == []

    def test_partial_selection_warns(self, validator):
        """A partial selection stays valid but always warns."""
        selection = SelectionResult(
            start_date=MONDAY,
            required_minutes=120,
            fragments=[SelectionFragment(1, MONDAY, time(9), time(10), 60)],
            accumulated_minutes=60,
            days_processed=90,
        )
        result = validator.validate_selection(selection)
        assert result.is_valid
        assert result.warnings == [
            "Insufficient capacity: only 60 of 120 minutes available within 90 day(s)"
        ]

    def test_multi_day_selection_warns(self, validator):
        """A selection spanning dates says so."""
        selection = SelectionResult(
            start_date=MONDAY,
            required_minutes=30,
            fragments=[
                SelectionFragment(1, MONDAY, time(9, 40), time(10), 20),
                SelectionFragment(1, date(2024, 1, 22), time(9), time(9, 10), 10),
            ],
            accumulated_minutes=30,
            days_processed=7,
        )
        result = validator.validate_selection(selection)
        assert result.warnings == [
            "Multi-day assignment: spans 8 days (Jan 15 to Jan 22, 2024)"
        ]
