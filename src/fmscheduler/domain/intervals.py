"""Interval math for time-of-day ranges.

All functions are pure. Ranges are half-open ``[start, end)`` pairs of
``datetime.time`` values; internally they are compared as minutes from
midnight so that gap arithmetic stays in integers.
"""

from datetime import time
from typing import Iterable, Optional

TimeRange = tuple[time, time]

MINUTES_PER_DAY = 24 * 60


def to_minutes(t: time) -> int:
    """Minutes from midnight for a time of day (seconds are dropped)."""
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> time:
    """Time of day for a minutes-from-midnight value."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for a time of day: {minutes}")
    hours, mins = divmod(minutes, 60)
    return time(hour=hours, minute=mins)


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """Check whether two ranges share any instant.

    Works for any comparable values (times, datetimes, minute counts).
    Ranges that only touch (``a_end == b_start``) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def duration_minutes(start: time, end: time) -> int:
    """Length of ``[start, end)`` in whole minutes."""
    return to_minutes(end) - to_minutes(start)


def clip_range(
    start: time,
    end: time,
    bounds_start: time,
    bounds_end: time,
) -> Optional[TimeRange]:
    """Clip a range to bounds.

    Returns:
        The overlapping portion, or None when the range lies outside the
        bounds (touching counts as outside).
    """
    if not overlaps(start, end, bounds_start, bounds_end):
        return None
    return (max(start, bounds_start), min(end, bounds_end))


def merge_ranges(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    """Sort ranges and merge any that overlap or touch."""
    merged: list[TimeRange] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def find_gaps(
    bounds_start: time,
    bounds_end: time,
    occupied: Iterable[TimeRange],
) -> list[TimeRange]:
    """Find every free sub-range of the bounds.

    Occupied ranges are clipped to the bounds, sorted and merged before the
    free space between them is collected.
    """
    clipped = []
    for start, end in occupied:
        piece = clip_range(start, end, bounds_start, bounds_end)
        if piece is not None:
            clipped.append(piece)

    gaps = []
    cursor = bounds_start
    for start, end in merge_ranges(clipped):
        if cursor < start:
            gaps.append((cursor, start))
        cursor = max(cursor, end)
    if cursor < bounds_end:
        gaps.append((cursor, bounds_end))
    return gaps


def find_free_subrange(
    bounds_start: time,
    bounds_end: time,
    occupied: Iterable[TimeRange],
    needed_minutes: int,
) -> Optional[TimeRange]:
    """Find the earliest contiguous free range of an exact length.

    Args:
        bounds_start: Start of the searchable interval.
        bounds_end: End of the searchable interval.
        occupied: Ranges already taken; they may overlap each other or
            extend past the bounds.
        needed_minutes: Required length of the returned range.

    Returns:
        ``(start, start + needed_minutes)`` at the start of the first gap
        that is long enough, or None if no gap is.
    """
    if needed_minutes <= 0:
        raise ValueError(f"needed_minutes must be positive, got {needed_minutes}")

    for gap_start, gap_end in find_gaps(bounds_start, bounds_end, occupied):
        if duration_minutes(gap_start, gap_end) >= needed_minutes:
            # gap_end is a time of day, so the result always stays in range
            return (gap_start, from_minutes(to_minutes(gap_start) + needed_minutes))
    return None


def envelope(ranges: Iterable[TimeRange]) -> Optional[TimeRange]:
    """Earliest start to latest end of a set of ranges (None when empty)."""
    ranges = list(ranges)
    if not ranges:
        return None
    return (min(s for s, _ in ranges), max(e for _, e in ranges))
