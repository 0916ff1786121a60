"""Main scheduling interface.

This module provides the high-level SlotScheduler class that wires the
capacity calculator, overlap detector, auto-selector and validator around
a pair of injected repositories. Controllers and admin forms call this
facade instead of repeating the scheduling logic themselves.
"""

from datetime import date, time
from typing import Iterable, Optional

from fmscheduler.domain.models import (
    AssignmentRequest,
    CapacityResult,
    SchedulingConfig,
    SelectionResult,
    SlotAvailability,
    TimeGap,
    WeeklySlot,
    day_of_week,
)
from fmscheduler.domain.repositories import BookingRepository, WeeklySlotRepository
from fmscheduler.scheduling.auto_selector import MultiDayAutoSelector
from fmscheduler.scheduling.capacity import CapacityCalculator
from fmscheduler.validation.overlap import OverlapDetector
from fmscheduler.validation.validator import AssignmentValidator, ValidationResult


class SlotScheduler:
    """High-level entry point to slot availability and scheduling.

    Every call re-reads the current bookings, so results are only valid
    at the moment they are computed. Before committing a new booking the
    caller must re-run ``validate`` (or ``has_multi_slot_overlap``) and
    insert the booking inside the same atomic unit, e.g. one database
    transaction holding a lock on the provider and date. Without that, two
    concurrent requests can both pass the check and double-book.

    Example:
        >>> scheduler = SlotScheduler(slot_repository, booking_repository)
        >>> selection = scheduler.auto_select(7, date(2024, 1, 15), 90)
        >>> selection.assigned_start_time, selection.assigned_end_time
        (datetime.time(9, 0), datetime.time(10, 30))
    """

    def __init__(
        self,
        slot_repository: WeeklySlotRepository,
        booking_repository: BookingRepository,
        config: Optional[SchedulingConfig] = None,
    ):
        """Initialize scheduler with its lookups.

        Args:
            slot_repository: Source of weekly availability slots.
            booking_repository: Source of existing bookings.
            config: Scheduling configuration; defaults are used if omitted.
        """
        self.slot_repository = slot_repository
        self.booking_repository = booking_repository
        self.config = config or SchedulingConfig()

        self.capacity_calculator = CapacityCalculator(booking_repository)
        self.overlap_detector = OverlapDetector(slot_repository, booking_repository)
        self.auto_selector = MultiDayAutoSelector(
            slot_repository, self.capacity_calculator, self.config
        )
        self.validator = AssignmentValidator(
            slot_repository, booking_repository, self.overlap_detector
        )

    def get_slot_capacity(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        exclude_booking_id: Optional[int] = None,
        needed_minutes: Optional[int] = None,
    ) -> CapacityResult:
        """Capacity of a slot on a date, with the next free range when sized."""
        if needed_minutes:
            return self.capacity_calculator.get_capacity_for(
                slot, scheduled_date, needed_minutes, exclude_booking_id
            )
        return self.capacity_calculator.get_slot_capacity(
            slot, scheduled_date, exclude_booking_id
        )

    def calculate_next_available_time(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        needed_minutes: int,
        exclude_booking_id: Optional[int] = None,
    ) -> Optional[tuple[time, time]]:
        return self.capacity_calculator.calculate_next_available_time(
            slot, scheduled_date, needed_minutes, exclude_booking_id
        )

    def find_available_gaps(
        self,
        slot: WeeklySlot,
        scheduled_date: date,
        exclude_booking_id: Optional[int] = None,
    ) -> list[TimeGap]:
        return self.capacity_calculator.find_available_gaps(
            slot, scheduled_date, exclude_booking_id
        )

    def has_multi_slot_overlap(
        self,
        provider_id: int,
        scheduled_date: date,
        candidate_slot_ids: Iterable[int],
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        return self.overlap_detector.has_multi_slot_overlap(
            provider_id, scheduled_date, candidate_slot_ids, exclude_booking_id
        )

    def has_overlap(
        self,
        provider_id: int,
        scheduled_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        return self.overlap_detector.has_overlap(
            provider_id, scheduled_date, start_time, end_time, exclude_booking_id
        )

    def auto_select(
        self,
        provider_id: int,
        start_date: date,
        required_minutes: int,
        max_horizon_days: Optional[int] = None,
    ) -> SelectionResult:
        return self.auto_selector.auto_select(
            provider_id, start_date, required_minutes, max_horizon_days
        )

    def auto_select_with_warnings(
        self,
        provider_id: int,
        start_date: date,
        required_minutes: int,
        max_horizon_days: Optional[int] = None,
    ) -> tuple[SelectionResult, ValidationResult]:
        """Auto-select and return the warnings a caller must surface.

        Returns:
            Tuple of (selection, validation result carrying warnings).
        """
        selection = self.auto_select(
            provider_id, start_date, required_minutes, max_horizon_days
        )
        return selection, self.validator.validate_selection(selection)

    def list_availability(
        self,
        provider_id: int,
        scheduled_date: date,
        min_duration_minutes: Optional[int] = None,
    ) -> list[SlotAvailability]:
        """Describe every active slot of a provider on a date.

        Args:
            provider_id: Provider to describe.
            scheduled_date: Concrete date.
            min_duration_minutes: When given, only slots whose available
                minutes reach it are returned, each with its next free
                range of that size.

        Returns:
            SlotAvailability entries ordered by slot start time.
        """
        slots = self.slot_repository.active_slots_for(
            provider_id, day_of_week(scheduled_date)
        )
        entries = []
        for slot in slots:
            if min_duration_minutes:
                entry = self.capacity_calculator.get_availability_on(
                    slot, scheduled_date, min_duration_minutes
                )
                if not entry.is_available:
                    continue
            else:
                capacity = self.capacity_calculator.get_slot_capacity(slot, scheduled_date)
                entry = SlotAvailability(
                    slot=slot,
                    scheduled_date=scheduled_date,
                    is_available=capacity.has_capacity,
                    capacity=capacity,
                )
            entries.append(entry)
        return entries

    def validate(self, request: AssignmentRequest) -> ValidationResult:
        """Validate a proposed assignment; see the class docstring on atomicity."""
        return self.validator.validate(request)

