"""Exceptions raised for scheduling contract violations.

These signal caller bugs (bad ranges, wrong weekday, unknown slot ids).
Ordinary outcomes such as "no free gap" or "overlap detected" are returned
as values and never raised.
"""


class SchedulingError(Exception):
    """Base class for scheduling contract violations."""


class InvalidRangeError(SchedulingError, ValueError):
    """A time range whose start is not strictly before its end."""

    def __init__(self, start, end, what: str = "range"):
        self.start = start
        self.end = end
        super().__init__(f"Invalid {what}: start {start} must be before end {end}")


class DayMismatchError(SchedulingError, ValueError):
    """A concrete date that does not fall on the slot's day of week."""

    def __init__(self, slot_id, slot_day: int, date_day: int):
        self.slot_id = slot_id
        self.slot_day = slot_day
        self.date_day = date_day
        super().__init__(
            f"Slot {slot_id} is defined for day {slot_day} "
            f"but the requested date falls on day {date_day}"
        )


class SlotNotFoundError(SchedulingError, KeyError):
    """A slot id that the slot lookup cannot resolve."""

    def __init__(self, slot_ids):
        self.slot_ids = list(slot_ids)
        super().__init__(f"Unknown time slot id(s): {self.slot_ids}")

    def __str__(self) -> str:
        return self.args[0]
