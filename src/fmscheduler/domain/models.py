"""Domain models for the scheduling core.

This module contains the data structures shared by the capacity calculator,
the overlap detector and the multi-day auto-selector: recurring weekly
slots, dated bookings, and the computed capacity and selection results.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from fmscheduler.domain.errors import InvalidRangeError
from fmscheduler.domain.intervals import (
    MINUTES_PER_DAY,
    duration_minutes,
    envelope,
    from_minutes,
    to_minutes,
)

DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]


def day_of_week(d: date) -> int:
    """Day of week for a date, 0 = Sunday through 6 = Saturday."""
    return d.isoweekday() % 7


def parse_time(value) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a time (time objects are accepted).

    Seconds are dropped so every range stays on whole minutes.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt).time().replace(second=0)
        except (TypeError, ValueError):
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def format_time(t: Optional[time], fmt: str = "%H:%M") -> Optional[str]:
    """Format a time of day, passing None through."""
    return t.strftime(fmt) if t is not None else None


class AssignmentStatus(Enum):
    """Lifecycle status of a booking."""

    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    FINISHED = "finished"
    COMPLETED = "completed"


@dataclass
class SchedulingConfig:
    """Configuration for the scheduling core.

    Attributes:
        max_horizon_days: Default number of days the auto-selector searches.
        released_statuses: Booking statuses that no longer occupy time.
        time_format: Format used when serializing times of day.
    """

    max_horizon_days: int = 90
    released_statuses: frozenset = field(
        default_factory=lambda: frozenset({AssignmentStatus.COMPLETED})
    )
    time_format: str = "%H:%M"


@dataclass(frozen=True)
class WeeklySlot:
    """A recurring availability window of a service provider.

    Attributes:
        id: Unique identifier of the slot.
        provider_id: Service provider the slot belongs to.
        day_of_week: 0 = Sunday through 6 = Saturday.
        start_time: Start of the window (inclusive).
        end_time: End of the window (exclusive).
        is_active: Inactive slots are never offered for scheduling.
    """

    id: int
    provider_id: int
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool = True

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be 0-6, got {self.day_of_week}")
        if self.start_time >= self.end_time:
            raise InvalidRangeError(self.start_time, self.end_time, "slot time range")

    @property
    def duration_minutes(self) -> int:
        """Length of the window in minutes."""
        return duration_minutes(self.start_time, self.end_time)

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]

    @property
    def formatted_time_range(self) -> str:
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

    @property
    def display_name(self) -> str:
        return f"{self.day_name}: {self.formatted_time_range}"

    @property
    def is_full_day(self) -> bool:
        """Whether the window spans the whole day (00:00 to 23:59)."""
        return self.start_time == time(0, 0) and self.end_time.strftime("%H:%M") == "23:59"

    def falls_on(self, d: date) -> bool:
        """Check if a concrete date falls on this slot's day of week."""
        return day_of_week(d) == self.day_of_week


@dataclass(frozen=True)
class Booking:
    """A dated commitment of provider time.

    Attributes:
        id: Unique identifier of the booking (assignment).
        provider_id: Service provider whose time is booked.
        scheduled_date: Concrete calendar date of the booking.
        start_time: Assigned start time of day (inclusive).
        end_time: Assigned end time of day (exclusive).
        time_slot_ids: Weekly slots the booking was carved from.
        status: Current assignment status.
    """

    id: int
    provider_id: int
    scheduled_date: date
    start_time: time
    end_time: time
    time_slot_ids: tuple[int, ...] = ()
    status: AssignmentStatus = AssignmentStatus.ASSIGNED

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise InvalidRangeError(self.start_time, self.end_time, "booking time range")
        # Normalize lists passed by callers so the value stays hashable
        object.__setattr__(self, "time_slot_ids", tuple(self.time_slot_ids))

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.start_time, self.end_time)

    @property
    def time_range(self) -> tuple[time, time]:
        return (self.start_time, self.end_time)


@dataclass
class AssignmentRequest:
    """A proposed assignment awaiting validation before it is committed.

    Attributes:
        provider_id: Provider the work is assigned to.
        scheduled_date: Concrete date of the assignment.
        time_slot_ids: Weekly slots the assignment occupies.
        allocated_duration_minutes: Work duration the slots must cover.
        assigned_start_time: Optional manual start override.
        assigned_end_time: Optional manual end override; derived from the
            start and the allocated duration when omitted. A derived
            end is clamped to 23:59; assignments never cross midnight.
        exclude_booking_id: Booking being edited, if any.
    """

    provider_id: int
    scheduled_date: date
    time_slot_ids: list[int] = field(default_factory=list)
    allocated_duration_minutes: Optional[int] = None
    assigned_start_time: Optional[time] = None
    assigned_end_time: Optional[time] = None
    exclude_booking_id: Optional[int] = None

    def __post_init__(self):
        if (
            self.assigned_start_time is not None
            and self.assigned_end_time is None
            and self.allocated_duration_minutes
        ):
            end_minutes = to_minutes(self.assigned_start_time) + self.allocated_duration_minutes
            self.assigned_end_time = from_minutes(min(end_minutes, MINUTES_PER_DAY - 1))
            if self.assigned_end_time <= self.assigned_start_time:
                raise InvalidRangeError(
                    self.assigned_start_time,
                    self.assigned_end_time,
                    "derived time range (no room before end of day)",
                )
        if self.manual_range is not None:
            start, end = self.manual_range
            if start >= end:
                raise InvalidRangeError(start, end, "manual time range")

    @property
    def manual_range(self) -> Optional[tuple[time, time]]:
        """The manual start/end override, when both ends are known."""
        if self.assigned_start_time is None or self.assigned_end_time is None:
            return None
        return (self.assigned_start_time, self.assigned_end_time)


@dataclass(frozen=True)
class TimeGap:
    """A free sub-range of a slot on a concrete date."""

    start_time: time
    end_time: time

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.start_time, self.end_time)

    def to_dict(self, time_format: str = "%H:%M") -> dict:
        return {
            "start": self.start_time.strftime(time_format),
            "end": self.end_time.strftime(time_format),
            "duration_minutes": self.duration_minutes,
        }


@dataclass
class CapacityResult:
    """Capacity of one slot on one date.

    Attributes:
        total_minutes: Length of the slot window.
        booked_minutes: Minutes consumed by bookings, clipped to the slot.
        available_minutes: ``max(0, total - booked)``.
        next_available_start: Start of the next free range, when a size was
            requested and a contiguous gap exists.
        next_available_end: End of that range.
    """

    total_minutes: int
    booked_minutes: int
    available_minutes: int
    next_available_start: Optional[time] = None
    next_available_end: Optional[time] = None

    @property
    def has_capacity(self) -> bool:
        return self.available_minutes > 0

    @property
    def utilization_percent(self) -> int:
        """Booked share of the slot, rounded to a whole percent."""
        if self.total_minutes <= 0:
            return 0
        return round(self.booked_minutes / self.total_minutes * 100)

    def to_dict(self, time_format: str = "%H:%M") -> dict:
        return {
            "total_minutes": self.total_minutes,
            "booked_minutes": self.booked_minutes,
            "available_minutes": self.available_minutes,
            "has_capacity": self.has_capacity,
            "utilization_percent": self.utilization_percent,
            "next_available_start": format_time(self.next_available_start, time_format),
            "next_available_end": format_time(self.next_available_end, time_format),
        }


@dataclass
class MultiSlotCapacity:
    """Capacity summed over several slots on one date."""

    total_minutes: int = 0
    booked_minutes: int = 0
    gaps: list[TimeGap] = field(default_factory=list)
    slot_count: int = 0

    @property
    def available_minutes(self) -> int:
        return max(0, self.total_minutes - self.booked_minutes)

    @property
    def has_capacity(self) -> bool:
        return self.available_minutes > 0

    def to_dict(self, time_format: str = "%H:%M") -> dict:
        return {
            "total_minutes": self.total_minutes,
            "booked_minutes": self.booked_minutes,
            "available_minutes": self.available_minutes,
            "has_capacity": self.has_capacity,
            "gaps": [gap.to_dict(time_format) for gap in self.gaps],
            "slot_count": self.slot_count,
        }


@dataclass
class SlotAvailability:
    """Availability summary of a slot on a date for a requested duration.

    Attributes:
        slot: The weekly slot described.
        scheduled_date: The concrete date checked.
        is_available: True if the available minutes cover the duration.
        capacity: Capacity figures; zeroed when the slot does not apply.
        next_available: Earliest free range of the requested duration.
    """

    slot: WeeklySlot
    scheduled_date: date
    is_available: bool
    capacity: CapacityResult
    next_available: Optional[tuple[time, time]] = None

    def to_dict(self, time_format: str = "%H:%M") -> dict:
        start, end = self.next_available or (None, None)
        data = {
            "id": self.slot.id,
            "day_of_week": self.slot.day_of_week,
            "day_name": self.slot.day_name,
            "start_time": self.slot.start_time.strftime(time_format),
            "end_time": self.slot.end_time.strftime(time_format),
            "duration_minutes": self.slot.duration_minutes,
            "display": self.slot.formatted_time_range,
            "is_full_day": self.slot.is_full_day,
            "is_available": self.is_available,
        }
        data.update(self.capacity.to_dict(time_format))
        data["next_available_start"] = format_time(start, time_format)
        data["next_available_end"] = format_time(end, time_format)
        return data


@dataclass(frozen=True)
class SelectionFragment:
    """One contiguous piece of an auto-selected schedule."""

    slot_id: int
    scheduled_date: date
    start_time: time
    end_time: time
    minutes: int

    def to_dict(self, time_format: str = "%H:%M") -> dict:
        return {
            "slot_id": self.slot_id,
            "date": self.scheduled_date.isoformat(),
            "start_time": self.start_time.strftime(time_format),
            "end_time": self.end_time.strftime(time_format),
            "minutes": self.minutes,
        }


@dataclass
class SelectionResult:
    """Outcome of a multi-day auto-selection.

    The fragments are the source of truth for occupied sub-ranges; the
    assigned start/end properties are the presentation envelope.

    Attributes:
        start_date: Date the search started from.
        required_minutes: Duration that was asked for.
        fragments: Selected pieces in selection order.
        accumulated_minutes: Exact sum of fragment minutes.
        days_processed: Days fully walked before the search stopped.
    """

    start_date: date
    required_minutes: int
    fragments: list[SelectionFragment] = field(default_factory=list)
    accumulated_minutes: int = 0
    days_processed: int = 0

    @property
    def fully_satisfied(self) -> bool:
        return self.accumulated_minutes >= self.required_minutes

    @property
    def span_days(self) -> int:
        """Days consumed by the search (at least 1)."""
        return self.days_processed if self.days_processed > 0 else 1

    @property
    def shortfall_minutes(self) -> int:
        return max(0, self.required_minutes - self.accumulated_minutes)

    @property
    def slot_ids(self) -> list[int]:
        """Unique slot ids in the order they were first selected."""
        return list(dict.fromkeys(f.slot_id for f in self.fragments))

    @property
    def assigned_start_time(self) -> Optional[time]:
        rng = envelope((f.start_time, f.end_time) for f in self.fragments)
        return rng[0] if rng else None

    @property
    def assigned_end_time(self) -> Optional[time]:
        rng = envelope((f.start_time, f.end_time) for f in self.fragments)
        return rng[1] if rng else None

    @property
    def dates(self) -> list[date]:
        """Distinct fragment dates in chronological order."""
        return sorted({f.scheduled_date for f in self.fragments})

    @property
    def last_date(self) -> Optional[date]:
        dates = self.dates
        return dates[-1] if dates else None

    @property
    def scheduled_end_date(self) -> Optional[date]:
        """Last fragment date, only when fragments span several dates."""
        dates = self.dates
        return dates[-1] if len(dates) > 1 else None

    @property
    def calendar_span_days(self) -> int:
        """Calendar days from the start date to the last used date, inclusive."""
        if self.last_date is None:
            return 1
        return (self.last_date - self.start_date).days + 1

    @property
    def is_multi_day(self) -> bool:
        return self.calendar_span_days > 1

    @property
    def message(self) -> str:
        if self.fully_satisfied:
            return (
                f"Successfully allocated {self.accumulated_minutes} minutes "
                f"across {self.calendar_span_days} day(s)"
            )
        return (
            f"Could only allocate {self.accumulated_minutes} out of "
            f"{self.required_minutes} minutes across {self.span_days} day(s)"
        )

    def to_dict(self, time_format: str = "%H:%M") -> dict:
        end_date = self.scheduled_end_date
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": end_date.isoformat() if end_date else None,
            "is_multi_day": self.is_multi_day,
            "span_days": self.span_days,
            "calendar_span_days": self.calendar_span_days,
            "requested_duration_minutes": self.required_minutes,
            "accumulated_minutes": self.accumulated_minutes,
            "is_sufficient": self.fully_satisfied,
            "shortfall_minutes": self.shortfall_minutes,
            "time_slot_ids": self.slot_ids,
            "assigned_start_time": format_time(self.assigned_start_time, time_format),
            "assigned_end_time": format_time(self.assigned_end_time, time_format),
            "selected_slots": [f.to_dict(time_format) for f in self.fragments],
            "days_processed": self.days_processed,
            "message": self.message,
        }
