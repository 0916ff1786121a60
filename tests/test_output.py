"""Tests for text and PDF output."""

import re
from datetime import date, time

import pytest

from fmscheduler.domain.models import (
    Booking,
    CapacityResult,
    SelectionFragment,
    SelectionResult,
    SlotAvailability,
    WeeklySlot,
)
from fmscheduler.output.debug_generator import DebugGenerator
from fmscheduler.output.pdf_generator import PDFGenerator

MONDAY = date(2024, 1, 15)
NEXT_MONDAY = date(2024, 1, 22)


@pytest.fixture
def slot():
    """Create a Monday 09:00-10:00 slot."""
    return WeeklySlot(1, 7, 1, time(9), time(10))


@pytest.fixture
def selection():
    """Create a selection split over two Mondays."""
    return SelectionResult(
        start_date=MONDAY,
        required_minutes=30,
        fragments=[
            SelectionFragment(1, MONDAY, time(9, 40), time(10), 20),
            SelectionFragment(1, NEXT_MONDAY, time(9), time(9, 10), 10),
        ],
        accumulated_minutes=30,
        days_processed=7,
    )


class TestDebugGenerator:
    """Tests for DebugGenerator."""

    def test_selection_report(self, selection):
        """The report lists fragments, per-day minutes and the outcome."""
        text = DebugGenerator().selection_to_string(selection)
        assert "AUTO-SELECTION REPORT - starting 2024-01-15" in text
        assert "Status:    SATISFIED" in text
        assert "Assigned range: 09:00 - 10:00" in text
        assert "Ends on: 2024-01-22" in text
        assert "09:40-10:00" in text
        assert "2024-01-22: # (10)" in text
        assert "Successfully allocated 30 minutes across 8 day(s)" in text

    def test_partial_report(self):
        """A partial selection shows its shortfall."""
        selection = SelectionResult(start_date=MONDAY, required_minutes=60, days_processed=90)
        text = DebugGenerator().selection_to_string(selection)
        assert "Status:    PARTIAL" in text
        assert "Shortfall: 60 min" in text
        assert "(no fragments selected)" in text

    def test_availability_report(self, slot):
        """Availability lines show free minutes and the next range."""
        entry = SlotAvailability(
            slot=slot,
            scheduled_date=MONDAY,
            is_available=True,
            capacity=CapacityResult(60, 40, 20),
            next_available=(time(9, 40), time(10)),
        )
        text = DebugGenerator().availability_to_string(MONDAY, [entry])
        assert "AVAILABILITY 2024-01-15 (Monday)" in text
        assert "20/60 min free (67% booked), next 09:40-10:00" in text

    def test_availability_report_empty(self):
        """A day without slots says so."""
        text = DebugGenerator().availability_to_string(MONDAY, [])
        assert "(no active slots)" in text

    def test_generate_writes_file(self, selection, slot, tmp_path):
        """The report is written to disk and returned."""
        path = tmp_path / "report.txt"
        availability = {
            MONDAY: [
                SlotAvailability(slot, MONDAY, False, CapacityResult(60, 60, 0)),
            ],
        }
        content = DebugGenerator().generate(selection, path, availability)
        assert path.read_text() == content
        assert "AVAILABILITY 2024-01-15" in content


class TestPDFGenerator:
    """Tests for PDFGenerator."""

    @pytest.fixture(autouse=True)
    def _require_reportlab(self):
        pytest.importorskip("reportlab")

    def test_generate_to_buffer(self, selection, slot):
        """A PDF document is produced in memory."""
        bookings = {MONDAY: [Booking(1, 7, MONDAY, time(9), time(9, 40))]}
        buffer = PDFGenerator().generate_to_buffer(selection, [slot], bookings)
        assert buffer.getvalue().startswith(b"%PDF")

    def test_generate_file(self, selection, tmp_path):
        """A PDF file is written without slot data."""
        path = tmp_path / "schedule.pdf"
        PDFGenerator().generate(selection, path)
        assert path.read_bytes().startswith(b"%PDF")

    def test_empty_selection(self, tmp_path):
        """An empty selection still renders a sheet."""
        path = tmp_path / "empty.pdf"
        PDFGenerator().generate(SelectionResult(start_date=MONDAY, required_minutes=60), path)
        assert path.exists()

    def test_many_dates_paginate(self):
        """Selections with many dates spill onto further pages."""
        fragments = [
            SelectionFragment(1, date(2024, 1, 1 + i), time(9), time(9, 15), 15)
            for i in range(30)
        ]
        selection = SelectionResult(
            start_date=date(2024, 1, 1),
            required_minutes=450,
            fragments=fragments,
            accumulated_minutes=450,
            days_processed=29,
        )
        buffer = PDFGenerator().generate_to_buffer(selection)
        counts = [int(n) for n in re.findall(rb"/Count (\d+)", buffer.getvalue())]
        assert max(counts) == 3
