"""PDF generation for assignment schedule sheets.

This module creates a printable sheet for an auto-selected assignment:
- One timeline row per date the selection touches
- The provider's slot windows, existing bookings and the selected fragments
- A summary block with requested, allocated and shortfall minutes
"""

from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from fmscheduler.domain.intervals import to_minutes
from fmscheduler.domain.models import Booking, SelectionResult, WeeklySlot

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "slot": (0.85, 0.92, 0.85),  # Pale green
    "booking": (0.6, 0.6, 0.6),  # Gray
    "fragment": (0.3, 0.6, 0.9),  # Blue
    "background": (0.95, 0.95, 0.95),  # Light gray
}


class PDFGenerator:
    """Generates printable PDF schedule sheets.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(selection, "assignment.pdf", slots=slots)
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def generate(
        self,
        selection: SelectionResult,
        output_path: Union[str, Path],
        slots: Optional[list[WeeklySlot]] = None,
        bookings: Optional[dict[date, list[Booking]]] = None,
        title: str = "Assignment Schedule",
    ) -> None:
        """Generate a PDF sheet and save it to a file.

        Args:
            selection: The auto-selection to render.
            output_path: Path to save the PDF.
            slots: Provider slots drawn behind each date's row.
            bookings: Existing bookings per date drawn over the slots.
            title: Heading printed at the top of each page.
        """
        canvas = self._import_canvas()
        c = canvas.Canvas(str(output_path), pagesize=(self.page_width, self.page_height))
        self._draw(c, selection, slots or [], bookings or {}, title)
        c.save()

    def generate_to_buffer(
        self,
        selection: SelectionResult,
        slots: Optional[list[WeeklySlot]] = None,
        bookings: Optional[dict[date, list[Booking]]] = None,
        title: str = "Assignment Schedule",
    ) -> BytesIO:
        """Generate a PDF sheet and return it as a bytes buffer."""
        canvas = self._import_canvas()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
        self._draw(c, selection, slots or [], bookings or {}, title)
        c.save()
        buffer.seek(0)
        return buffer

    @staticmethod
    def _import_canvas():
        try:
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )
        return canvas

    def _draw(
        self,
        c,
        selection: SelectionResult,
        slots: list[WeeklySlot],
        bookings: dict[date, list[Booking]],
        title: str,
    ) -> None:
        """Draw all pages of the sheet."""
        dates = selection.dates or [selection.start_date]
        day_start, day_end = self._hour_bounds(selection, slots)

        row_height = 28
        header_height = 110
        footer_height = 40
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / row_height))

        timeline_left = self.margin + 110  # Space for date labels
        timeline_width = self.page_width - self.margin - 20 - timeline_left

        total_pages = (len(dates) + rows_per_page - 1) // rows_per_page
        for page_index, page_start in enumerate(range(0, len(dates), rows_per_page), 1):
            self._draw_header(c, selection, title)
            axis_y = self.page_height - self.margin - header_height
            self._draw_time_axis(c, timeline_left, axis_y, timeline_width, day_start, day_end)

            y = axis_y - 10
            for d in dates[page_start : page_start + rows_per_page]:
                y -= row_height
                self._draw_date_row(
                    c, d, selection, slots, bookings.get(d, []),
                    timeline_left, timeline_width, y, row_height - 6,
                    day_start, day_end,
                )

            self._draw_legend(c, self.margin, self.margin + 10)
            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_index} of {total_pages}",
            )
            c.showPage()

    def _hour_bounds(
        self,
        selection: SelectionResult,
        slots: list[WeeklySlot],
    ) -> tuple[int, int]:
        """Whole-hour window, in minutes, covering everything drawn."""
        starts = [to_minutes(f.start_time) for f in selection.fragments]
        ends = [to_minutes(f.end_time) for f in selection.fragments]
        starts += [to_minutes(s.start_time) for s in slots]
        ends += [to_minutes(s.end_time) for s in slots]
        if not starts:
            return 0, 24 * 60
        first = (min(starts) // 60) * 60
        last = min(24 * 60, -(-max(ends) // 60) * 60)
        return first, max(last, first + 60)

    def _draw_header(self, c, selection: SelectionResult, title: str) -> None:
        """Draw page header with title and totals."""
        top = self.page_height - self.margin
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, top - 20, title)

        c.setFont("Helvetica", 10)
        lines = [
            f"Start date: {selection.start_date.strftime('%A, %B %d, %Y')}",
            f"Requested: {selection.required_minutes} min   "
            f"Allocated: {selection.accumulated_minutes} min   "
            f"Fragments: {len(selection.fragments)}",
        ]
        start = selection.assigned_start_time
        end = selection.assigned_end_time
        if start is not None and end is not None:
            lines.append(f"Assigned range: {start.strftime('%H:%M')} - {end.strftime('%H:%M')}")
        if not selection.fully_satisfied:
            lines.append(
                f"WARNING: short by {selection.shortfall_minutes} min "
                f"after {selection.span_days} day(s)"
            )

        y = top - 38
        for line in lines:
            c.drawString(self.margin, y, line)
            y -= 14

    def _draw_time_axis(
        self,
        c,
        x: float,
        y: float,
        width: float,
        day_start: int,
        day_end: int,
    ) -> None:
        """Draw time axis with hour markers."""
        span = day_end - day_start
        c.setFont("Helvetica", 8)
        c.setStrokeColorRGB(0.7, 0.7, 0.7)
        c.setFillColorRGB(0, 0, 0)

        for minute in range(day_start, day_end + 1, 60):
            hx = x + (minute - day_start) / span * width
            c.line(hx, y, hx, y - 5)
            c.drawCentredString(hx, y + 5, f"{minute // 60:02d}")

    def _draw_date_row(
        self,
        c,
        d: date,
        selection: SelectionResult,
        slots: list[WeeklySlot],
        day_bookings: list[Booking],
        timeline_x: float,
        timeline_width: float,
        y: float,
        height: float,
        day_start: int,
        day_end: int,
    ) -> None:
        """Draw one date's row of slots, bookings and fragments."""
        span = day_end - day_start

        def x_for(t) -> float:
            minutes = min(max(to_minutes(t), day_start), day_end)
            return timeline_x + (minutes - day_start) / span * timeline_width

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        c.drawString(self.margin, y + height / 2, d.strftime("%a %b %d, %Y"))
        day_minutes = sum(f.minutes for f in selection.fragments if f.scheduled_date == d)
        c.setFont("Helvetica", 7)
        c.drawString(self.margin, y + height / 2 - 9, f"{day_minutes} min")

        c.setFillColorRGB(*COLORS["background"])
        c.rect(timeline_x, y, timeline_width, height, fill=1, stroke=0)

        c.setFillColorRGB(*COLORS["slot"])
        for slot in slots:
            if slot.is_active and slot.falls_on(d):
                sx = x_for(slot.start_time)
                c.rect(sx, y, x_for(slot.end_time) - sx, height, fill=1, stroke=0)

        c.setFillColorRGB(*COLORS["booking"])
        for booking in day_bookings:
            bx = x_for(booking.start_time)
            c.rect(bx, y + height / 4, x_for(booking.end_time) - bx, height / 2, fill=1, stroke=0)

        for fragment in selection.fragments:
            if fragment.scheduled_date != d:
                continue
            fx = x_for(fragment.start_time)
            fw = x_for(fragment.end_time) - fx
            c.setFillColorRGB(*COLORS["fragment"])
            c.rect(fx, y, fw, height, fill=1, stroke=0)
            c.setFillColorRGB(1, 1, 1)
            c.setFont("Helvetica-Bold", 6)
            c.drawCentredString(fx + fw / 2, y + height / 2 - 2, str(fragment.minutes))

        c.setStrokeColorRGB(0.3, 0.3, 0.3)
        c.setLineWidth(0.5)
        c.rect(timeline_x, y, timeline_width, height, fill=0, stroke=1)

    def _draw_legend(self, c, x: float, y: float) -> None:
        """Draw legend for colors."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        items = [
            ("slot", "Slot window"),
            ("booking", "Existing booking"),
            ("fragment", "Selected time"),
        ]

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for key, label in items:
            c.setFillColorRGB(*COLORS[key])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 90
