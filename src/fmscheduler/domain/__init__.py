"""Domain models, interval math and lookup interfaces for scheduling."""

from fmscheduler.domain.errors import (
    DayMismatchError,
    InvalidRangeError,
    SchedulingError,
    SlotNotFoundError,
)
from fmscheduler.domain.models import (
    AssignmentRequest,
    AssignmentStatus,
    Booking,
    CapacityResult,
    MultiSlotCapacity,
    SchedulingConfig,
    SelectionFragment,
    SelectionResult,
    SlotAvailability,
    TimeGap,
    WeeklySlot,
    day_of_week,
    parse_time,
)
from fmscheduler.domain.repositories import (
    BookingRepository,
    InMemoryBookingRepository,
    InMemorySlotRepository,
    WeeklySlotRepository,
)

__all__ = [
    # Models
    "AssignmentRequest",
    "AssignmentStatus",
    "Booking",
    "CapacityResult",
    "MultiSlotCapacity",
    "SchedulingConfig",
    "SelectionFragment",
    "SelectionResult",
    "SlotAvailability",
    "TimeGap",
    "WeeklySlot",
    "day_of_week",
    "parse_time",
    # Errors
    "DayMismatchError",
    "InvalidRangeError",
    "SchedulingError",
    "SlotNotFoundError",
    # Repositories
    "BookingRepository",
    "InMemoryBookingRepository",
    "InMemorySlotRepository",
    "WeeklySlotRepository",
]
