"""Debug text output for selection and availability analysis.

This module creates text-based output to inspect:
- Which slot fragments an auto-selection picked, day by day
- How much capacity each slot has left on a date
- Shortfall when the horizon ran out
"""

from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Optional, Union

from fmscheduler.domain.models import SelectionResult, SlotAvailability


class DebugGenerator:
    """Generates human-readable text reports.

    Example:
        >>> generator = DebugGenerator()
        >>> print(generator.selection_to_string(selection))
    """

    def __init__(self, time_format: str = "%H:%M"):
        self.time_format = time_format

    def generate(
        self,
        selection: SelectionResult,
        output_path: Union[str, Path],
        availability: Optional[dict[date, list[SlotAvailability]]] = None,
    ) -> str:
        """Generate a selection report and save it to a file.

        Args:
            selection: The auto-selection to describe.
            output_path: Path to save the text file.
            availability: Optional per-date slot availability to append.

        Returns:
            The generated text content.
        """
        content = self.selection_to_string(selection)
        if availability:
            for d in sorted(availability):
                content += "\n" + self.availability_to_string(d, availability[d])
        Path(output_path).write_text(content)
        return content

    def selection_to_string(self, selection: SelectionResult) -> str:
        """Render a selection as text."""
        lines = []

        lines.append("=" * 72)
        lines.append(f"AUTO-SELECTION REPORT - starting {selection.start_date}")
        lines.append("=" * 72)
        lines.append("")
        lines.append(f"Requested: {selection.required_minutes} min")
        lines.append(f"Allocated: {selection.accumulated_minutes} min")
        lines.append(f"Status:    {'SATISFIED' if selection.fully_satisfied else 'PARTIAL'}")
        if not selection.fully_satisfied:
            lines.append(f"Shortfall: {selection.shortfall_minutes} min")
        lines.append(f"Days searched: {selection.span_days}")

        start = selection.assigned_start_time
        end = selection.assigned_end_time
        if start is not None and end is not None:
            lines.append(
                f"Assigned range: {start.strftime(self.time_format)} - "
                f"{end.strftime(self.time_format)}"
            )
        if selection.scheduled_end_date:
            lines.append(f"Ends on: {selection.scheduled_end_date}")
        lines.append("")

        lines.append("-" * 72)
        lines.append(f"{'#':>3} {'Date':<12} {'Day':<4} {'Slot':>6} {'Range':^15} {'Minutes':>8}")
        lines.append("-" * 72)

        per_day = defaultdict(int)
        for i, fragment in enumerate(selection.fragments, 1):
            per_day[fragment.scheduled_date] += fragment.minutes
            time_range = (
                f"{fragment.start_time.strftime(self.time_format)}-"
                f"{fragment.end_time.strftime(self.time_format)}"
            )
            lines.append(
                f"{i:>3} {fragment.scheduled_date.isoformat():<12} "
                f"{fragment.scheduled_date.strftime('%a'):<4} "
                f"{fragment.slot_id:>6} {time_range:^15} {fragment.minutes:>8}"
            )
        if not selection.fragments:
            lines.append("    (no fragments selected)")
        lines.append("")

        if per_day:
            lines.append("-" * 72)
            lines.append("MINUTES PER DAY")
            lines.append("-" * 72)
            for d in sorted(per_day):
                minutes = per_day[d]
                bar = "#" * max(1, minutes // 15)
                lines.append(f"{d.isoformat()}: {bar} ({minutes})")
            lines.append("")

        lines.append(selection.message)
        return "\n".join(lines) + "\n"

    def availability_to_string(
        self,
        scheduled_date: date,
        entries: list[SlotAvailability],
    ) -> str:
        """Render a day's slot availability as text."""
        lines = []
        lines.append("-" * 72)
        lines.append(f"AVAILABILITY {scheduled_date.isoformat()} ({scheduled_date.strftime('%A')})")
        lines.append("-" * 72)

        if not entries:
            lines.append("    (no active slots)")
            return "\n".join(lines) + "\n"

        for entry in entries:
            capacity = entry.capacity
            line = (
                f"  slot {entry.slot.id:>4} {entry.slot.formatted_time_range}: "
                f"{capacity.available_minutes}/{capacity.total_minutes} min free "
                f"({capacity.utilization_percent}% booked)"
            )
            if entry.next_available:
                start, end = entry.next_available
                line += (
                    f", next {start.strftime(self.time_format)}-"
                    f"{end.strftime(self.time_format)}"
                )
            lines.append(line)
        return "\n".join(lines) + "\n"
