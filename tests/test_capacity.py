"""Tests for slot capacity computation."""

from datetime import date, time

import pytest

from fmscheduler.domain.errors import DayMismatchError
from fmscheduler.domain.models import AssignmentStatus, Booking, WeeklySlot
from fmscheduler.domain.repositories import InMemoryBookingRepository
from fmscheduler.scheduling.capacity import CapacityCalculator

MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)


class TestSlotCapacity:
    """Tests for CapacityCalculator.get_slot_capacity."""

    @pytest.fixture
    def bookings(self):
        """Create an empty booking store."""
        return InMemoryBookingRepository()

    @pytest.fixture
    def calculator(self, bookings):
        """Create a calculator over the booking store."""
        return CapacityCalculator(bookings)

    @pytest.fixture
    def slot(self):
        """Create a Monday 09:00-17:00 slot."""
        return WeeklySlot(id=1, provider_id=7, day_of_week=1, start_time=time(9), end_time=time(17))

    def test_empty_slot(self, calculator, slot):
        """With no bookings the whole slot is free."""
        capacity = calculator.get_slot_capacity(slot, MONDAY)
        assert capacity.total_minutes == 480
        assert capacity.booked_minutes == 0
        assert capacity.available_minutes == 480
        assert capacity.has_capacity

    def test_booking_reduces_capacity(self, calculator, bookings, slot):
        """A booking inside the slot consumes its length."""
        bookings.add(Booking(1, 7, MONDAY, time(10), time(11, 30)))
        capacity = calculator.get_slot_capacity(slot, MONDAY)
        assert capacity.booked_minutes == 90
        assert capacity.available_minutes == 390

    def test_partial_booking_is_clipped(self, calculator, bookings, slot):
        """Only the part of a booking inside the slot counts."""
        bookings.add(Booking(1, 7, MONDAY, time(8), time(9, 30)))
        bookings.add(Booking(2, 7, MONDAY, time(16, 45), time(18)))
        capacity = calculator.get_slot_capacity(slot, MONDAY)
        assert capacity.booked_minutes == 45

    def test_outside_bookings_ignored(self, calculator, bookings, slot):
        """Bookings outside the slot or on other dates do not count."""
        bookings.add(Booking(1, 7, MONDAY, time(7), time(9)))
        bookings.add(Booking(2, 7, date(2024, 1, 22), time(9), time(10)))
        bookings.add(Booking(3, 8, MONDAY, time(9), time(10)))
        capacity = calculator.get_slot_capacity(slot, MONDAY)
        assert capacity.available_minutes == 480

    def test_overbooked_clamped_at_zero(self, calculator, bookings, slot):
        """Overlapping bookings never push available below zero."""
        bookings.add(Booking(1, 7, MONDAY, time(9), time(17)))
        bookings.add(Booking(2, 7, MONDAY, time(12), time(13)))
        capacity = calculator.get_slot_capacity(slot, MONDAY)
        assert capacity.booked_minutes == 540
        assert capacity.available_minutes == 0
        assert not capacity.has_capacity

    def test_exclude_booking_under_edit(self, calculator, bookings, slot):
        """The excluded booking does not count against itself."""
        bookings.add(Booking(1, 7, MONDAY, time(9), time(10)))
        capacity = calculator.get_slot_capacity(slot, MONDAY, exclude_booking_id=1)
        assert capacity.available_minutes == 480

    def test_completed_bookings_ignored(self, calculator, bookings, slot):
        """Completed work no longer occupies the slot."""
        bookings.add(Booking(1, 7, MONDAY, time(9), time(10), status=AssignmentStatus.COMPLETED))
        bookings.add(Booking(2, 7, MONDAY, time(10), time(11), status=AssignmentStatus.ON_HOLD))
        capacity = calculator.get_slot_capacity(slot, MONDAY)
        assert capacity.booked_minutes == 60

    def test_day_mismatch_raises(self, calculator, slot):
        """A date on another weekday is a caller error."""
        with pytest.raises(DayMismatchError):
            calculator.get_slot_capacity(slot, TUESDAY)

    def test_capacity_bounds(self, calculator, bookings, slot):
        """Available minutes stay within 0 and the slot length."""
        ranges = [
            (time(8), time(9, 15)),
            (time(9), time(12)),
            (time(11), time(16)),
            (time(15), time(18)),
        ]
        for i, (start, end) in enumerate(ranges, 1):
            bookings.add(Booking(i, 7, MONDAY, start, end))
            capacity = calculator.get_slot_capacity(slot, MONDAY)
            assert 0 <= capacity.available_minutes <= capacity.total_minutes

    def test_adding_booking_never_increases_available(self, calculator, bookings, slot):
        """Available minutes only go down as bookings are added."""
        previous = calculator.get_slot_capacity(slot, MONDAY).available_minutes
        for i, hour in enumerate([9, 11, 11, 14, 16], 1):
            bookings.add(Booking(i, 7, MONDAY, time(hour), time(hour, 45)))
            current = calculator.get_slot_capacity(slot, MONDAY).available_minutes
            assert current <= previous
            previous = current

    def test_repeated_reads_are_identical(self, calculator, bookings, slot):
        """Reading capacity twice without changes gives the same result."""
        bookings.add(Booking(1, 7, MONDAY, time(10), time(11)))
        first = calculator.get_slot_capacity(slot, MONDAY)
        second = calculator.get_slot_capacity(slot, MONDAY)
        assert first == second


class TestNextAvailableTime:
    """Tests for CapacityCalculator.calculate_next_available_time."""

    @pytest.fixture
    def bookings(self):
        """Create an empty booking store."""
        return InMemoryBookingRepository()

    @pytest.fixture
    def calculator(self, bookings):
        """Create a calculator over the booking store."""
        return CapacityCalculator(bookings)

    @pytest.fixture
    def slot(self):
        """Create a Monday 09:00-17:00 slot."""
        return WeeklySlot(1, 7, 1, time(9), time(17))

    def test_empty_slot(self, calculator, slot):
        """An empty slot offers its first hour."""
        assert calculator.calculate_next_available_time(slot, MONDAY, 60) == (time(9), time(10))

    def test_after_first_booking(self, calculator, bookings, slot):
        """A booking at 09:00 moves the range to 10:00."""
        bookings.add(Booking(1, 7, MONDAY, time(9), time(10)))
        assert calculator.calculate_next_available_time(slot, MONDAY, 60) == (time(10), time(11))

    def test_fragmented_capacity_returns_none(self, calculator, bookings):
        """Scattered free minutes do not make a contiguous range."""
        slot = WeeklySlot(2, 7, 1, time(9), time(11))
        bookings.add(Booking(1, 7, MONDAY, time(9, 30), time(10)))
        bookings.add(Booking(2, 7, MONDAY, time(10, 30), time(11)))
        assert calculator.get_slot_capacity(slot, MONDAY).available_minutes == 60
        assert calculator.calculate_next_available_time(slot, MONDAY, 60) is None

    def test_exclude_booking_under_edit(self, calculator, bookings, slot):
        """The excluded booking frees its own time."""
        bookings.add(Booking(1, 7, MONDAY, time(9), time(10)))
        result = calculator.calculate_next_available_time(slot, MONDAY, 60, exclude_booking_id=1)
        assert result == (time(9), time(10))

    def test_day_mismatch_raises(self, calculator, slot):
        """A date on another weekday is a caller error."""
        with pytest.raises(DayMismatchError):
            calculator.calculate_next_available_time(slot, TUESDAY, 60)

    def test_capacity_with_next_range(self, calculator, bookings, slot):
        """Capacity can carry the next free range of a given size."""
        bookings.add(Booking(1, 7, MONDAY, time(9), time(10)))
        capacity = calculator.get_capacity_for(slot, MONDAY, 30)
        assert capacity.available_minutes == 420
        assert capacity.next_available_start == time(10)
        assert capacity.next_available_end == time(10, 30)


class TestGapsAndMultiSlot:
    """Tests for gap listing, multi-slot totals and availability summaries."""

    @pytest.fixture
    def bookings(self):
        """Create a booking store with two Monday bookings."""
        return InMemoryBookingRepository([
            Booking(1, 7, MONDAY, time(10), time(11)),
            Booking(2, 7, MONDAY, time(13), time(14)),
        ])

    @pytest.fixture
    def calculator(self, bookings):
        """Create a calculator over the booking store."""
        return CapacityCalculator(bookings)

    @pytest.fixture
    def morning(self):
        """Create a Monday 09:00-12:00 slot."""
        return WeeklySlot(1, 7, 1, time(9), time(12))

    @pytest.fixture
    def afternoon(self):
        """Create a Monday 13:00-17:00 slot."""
        return WeeklySlot(2, 7, 1, time(13), time(17))

    def test_find_available_gaps(self, calculator, morning):
        """Gaps around a booking are listed with their lengths."""
        gaps = calculator.find_available_gaps(morning, MONDAY)
        assert [(g.start_time, g.end_time) for g in gaps] == [
            (time(9), time(10)),
            (time(11), time(12)),
        ]
        assert [g.duration_minutes for g in gaps] == [60, 60]

    def test_multi_slot_capacity(self, calculator, morning, afternoon):
        """Totals are summed and gaps concatenated across slots."""
        result = calculator.get_multi_slot_capacity([morning, afternoon], MONDAY)
        assert result.slot_count == 2
        assert result.total_minutes == 420
        assert result.booked_minutes == 120
        assert result.available_minutes == 300
        assert len(result.gaps) == 3

    def test_availability_on(self, calculator, afternoon):
        """A slot with enough free minutes reports its next range."""
        entry = calculator.get_availability_on(afternoon, MONDAY, 120)
        assert entry.is_available
        assert entry.capacity.available_minutes == 180
        assert entry.next_available == (time(14), time(16))

    def test_availability_not_enough(self, calculator, morning):
        """A slot short of the duration is not available."""
        entry = calculator.get_availability_on(morning, MONDAY, 150)
        assert not entry.is_available
        assert entry.next_available is None

    def test_availability_inactive_slot(self, calculator):
        """Inactive slots are reported unavailable with zeroed figures."""
        slot = WeeklySlot(3, 7, 1, time(9), time(12), is_active=False)
        entry = calculator.get_availability_on(slot, MONDAY, 30)
        assert not entry.is_available
        assert entry.capacity.total_minutes == 0

    def test_availability_wrong_weekday(self, calculator, morning):
        """A date on another weekday is reported unavailable."""
        entry = calculator.get_availability_on(morning, TUESDAY, 30)
        assert not entry.is_available
        assert entry.capacity.available_minutes == 0
