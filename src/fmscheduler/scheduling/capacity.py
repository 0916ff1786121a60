"""Capacity calculator for weekly slots on concrete dates.

A weekly slot is recurring, so its capacity only makes sense for one
concrete date at a time. The calculator re-derives every figure from the
current bookings on each call; nothing is cached between calls.
"""

import logging
from datetime import date, time
from typing import Optional

from fmscheduler.domain.errors import DayMismatchError
from fmscheduler.domain.intervals import (
    clip_range,
    duration_minutes,
    find_free_subrange,
    find_gaps,
)
from fmscheduler.domain.models import (
    CapacityResult,
    MultiSlotCapacity,
    SlotAvailability,
    TimeGap,
    WeeklySlot,
    day_of_week,
)
from fmscheduler.domain.repositories import BookingRepository

logger = logging.getLogger(__name__)


class CapacityCalculator:
    """Computes booked and available minutes of a slot on a date.

    Example:
        >>> calculator = CapacityCalculator(booking_repository)
        >>> capacity = calculator.get_slot_capacity(slot, date(2024, 1, 15))
        >>> capacity.available_minutes
        420
    """

    def __init__(self, booking_repository: BookingRepository):
        self.booking_repository = booking_repository

    def get_slot_capacity(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        exclude_booking_id: Optional[int] = None,
    ) -> CapacityResult:
        """Compute total, booked and available minutes of a slot on a date.

        Each booking contributes only the part that lies inside the slot.

        Args:
            slot: The weekly slot to measure.
            scheduled_date: Concrete date; must fall on the slot's weekday.
            exclude_booking_id: Booking to ignore (the one being edited).

        Returns:
            CapacityResult with ``0 <= available_minutes <= total_minutes``.

        Raises:
            DayMismatchError: If the date is not on the slot's weekday.
        """
        self._check_day(slot, scheduled_date)

        total = slot.duration_minutes
        booked = sum(
            duration_minutes(start, end)
            for start, end in self._occupied_ranges(slot, scheduled_date, exclude_booking_id)
        )
        available = max(0, total - booked)

        logger.debug(
            "Slot %s on %s: total=%d booked=%d available=%d",
            slot.id, scheduled_date, total, booked, available,
        )
        return CapacityResult(
            total_minutes=total,
            booked_minutes=booked,
            available_minutes=available,
        )

    def calculate_next_available_time(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        needed_minutes: int,
        exclude_booking_id: Optional[int] = None,
    ) -> Optional[tuple[time, time]]:
        """Find the earliest contiguous free range of a given size in a slot.

        Aggregate free minutes are not enough: the range must fit in a
        single gap between bookings.

        Args:
            slot: The weekly slot to search.
            scheduled_date: Concrete date; must fall on the slot's weekday.
            needed_minutes: Exact length of the wanted range.
            exclude_booking_id: Booking to ignore (the one being edited).

        Returns:
            ``(start, end)`` of the range, or None if no gap is large enough.
        """
        self._check_day(slot, scheduled_date)
        return find_free_subrange(
            slot.start_time,
            slot.end_time,
            self._occupied_ranges(slot, scheduled_date, exclude_booking_id),
            needed_minutes,
        )

    def get_capacity_for(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        needed_minutes: int,
        exclude_booking_id: Optional[int] = None,
    ) -> CapacityResult:
        """Capacity of a slot plus the next free range of a requested size."""
        capacity = self.get_slot_capacity(slot, scheduled_date, exclude_booking_id)
        if capacity.has_capacity:
            next_range = self.calculate_next_available_time(
                slot, scheduled_date, needed_minutes, exclude_booking_id
            )
            if next_range is not None:
                capacity.next_available_start, capacity.next_available_end = next_range
        return capacity

    def find_available_gaps(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        exclude_booking_id: Optional[int] = None,
    ) -> list[TimeGap]:
        """List every free sub-range of a slot on a date."""
        self._check_day(slot, scheduled_date)
        gaps = find_gaps(
            slot.start_time,
            slot.end_time,
            self._occupied_ranges(slot, scheduled_date, exclude_booking_id),
        )
        return [TimeGap(start, end) for start, end in gaps]

    def get_multi_slot_capacity(
        self,
        slots: list[WeeklySlot],
        scheduled_date: date,
        exclude_booking_id: Optional[int] = None,
    ) -> MultiSlotCapacity:
        """Sum capacity over several slots of the same date."""
        result = MultiSlotCapacity(slot_count=len(slots))
        for slot in slots:
            capacity = self.get_slot_capacity(slot, scheduled_date, exclude_booking_id)
            result.total_minutes += capacity.total_minutes
            result.booked_minutes += capacity.booked_minutes
            result.gaps.extend(
                self.find_available_gaps(slot, scheduled_date, exclude_booking_id)
            )
        return result

    def get_availability_on(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        needed_minutes: int,
    ) -> SlotAvailability:
        """Summarize whether a slot can take a duration on a date.

        Inactive slots and dates on another weekday are reported as not
        available with zeroed figures instead of raising.
        """
        if not slot.is_active or not slot.falls_on(scheduled_date):
            return SlotAvailability(
                slot=slot,
                scheduled_date=scheduled_date,
                is_available=False,
                capacity=CapacityResult(0, 0, 0),
            )

        capacity = self.get_slot_capacity(slot, scheduled_date)
        next_available = None
        if capacity.has_capacity:
            next_available = self.calculate_next_available_time(
                slot, scheduled_date, needed_minutes
            )

        return SlotAvailability(
            slot=slot,
            scheduled_date=scheduled_date,
            is_available=capacity.available_minutes >= needed_minutes,
            capacity=capacity,
            next_available=next_available,
        )

    def _occupied_ranges(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        exclude_booking_id: Optional[int],
    ) -> list[tuple[time, time]]:
        """Booking ranges on the date, clipped to the slot bounds."""
        bookings = self.booking_repository.bookings_for(
            slot.provider_id, scheduled_date, exclude_booking_id
        )
        ranges = []
        for booking in bookings:
            piece = clip_range(
                booking.start_time, booking.end_time, slot.start_time, slot.end_time
            )
            if piece is not None:
                ranges.append(piece)
        return ranges

    @staticmethod
    def _check_day(slot: WeeklySlot, scheduled_date: date) -> None:
        if not slot.falls_on(scheduled_date):
            raise DayMismatchError(slot.id, slot.day_of_week, day_of_week(scheduled_date))
