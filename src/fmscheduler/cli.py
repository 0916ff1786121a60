"""Command-line interface for the fmscheduler slot scheduling tool."""

import argparse
import json
import logging
import sys
from datetime import date, datetime, timedelta
from typing import Optional

from fmscheduler.domain.errors import SchedulingError
from fmscheduler.domain.models import (
    AssignmentStatus,
    Booking,
    SchedulingConfig,
    WeeklySlot,
    day_of_week,
    format_time,
    parse_time,
)
from fmscheduler.domain.repositories import (
    InMemoryBookingRepository,
    InMemorySlotRepository,
)
from fmscheduler.output.debug_generator import DebugGenerator
from fmscheduler.output.pdf_generator import PDFGenerator
from fmscheduler.scheduling.scheduler import SlotScheduler

logger = logging.getLogger(__name__)


def load_schedule_data(
    path,
    config: Optional[SchedulingConfig] = None,
) -> tuple[InMemorySlotRepository, InMemoryBookingRepository]:
    """Load slots and bookings from a JSON data file.

    Args:
        path: File holding ``{"slots": [...], "bookings": [...]}``.
        config: Configuration handed to the booking repository.

    Raises:
        ValueError: If the file is not valid JSON or an entry is malformed.
    """
    with open(path) as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object with 'slots' and 'bookings'")

    slot_repository = InMemorySlotRepository()
    booking_repository = InMemoryBookingRepository(config=config or SchedulingConfig())
    try:
        for item in raw.get("slots", []):
            slot_repository.add(
                WeeklySlot(
                    id=int(item["id"]),
                    provider_id=int(item["provider_id"]),
                    day_of_week=int(item["day_of_week"]),
                    start_time=parse_time(item["start_time"]),
                    end_time=parse_time(item["end_time"]),
                    is_active=bool(item.get("is_active", True)),
                )
            )
        for item in raw.get("bookings", []):
            booking_repository.add(
                Booking(
                    id=int(item["id"]),
                    provider_id=int(item["provider_id"]),
                    scheduled_date=_parse_date(item["scheduled_date"]),
                    start_time=parse_time(item["start_time"]),
                    end_time=parse_time(item["end_time"]),
                    time_slot_ids=[int(i) for i in item.get("time_slot_ids", [])],
                    status=AssignmentStatus(item.get("status", "assigned")),
                )
            )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"{path}: malformed entry ({exc!r})") from exc

    logger.debug(
        "Loaded %d slot(s) and %d booking(s) from %s",
        len(slot_repository.slots), len(booking_repository.bookings), path,
    )
    return slot_repository, booking_repository


def create_sample_data(
    start_date: Optional[date] = None,
) -> tuple[InMemorySlotRepository, InMemoryBookingRepository]:
    """Create a sample provider schedule for demos.

    Provider 7 works Monday 09:00-12:00 and 13:00-17:00 and Wednesday
    08:00-10:00; provider 8 works Tuesday 10:00-14:00. The first Monday on
    or after ``start_date`` already carries two bookings.

    Args:
        start_date: Reference date. If None, uses today.
    """
    if start_date is None:
        start_date = date.today()
    monday = start_date + timedelta(days=(1 - day_of_week(start_date)) % 7)

    slots = [
        WeeklySlot(1, 7, 1, parse_time("09:00"), parse_time("12:00")),
        WeeklySlot(2, 7, 1, parse_time("13:00"), parse_time("17:00")),
        WeeklySlot(3, 7, 3, parse_time("08:00"), parse_time("10:00")),
        WeeklySlot(4, 7, 5, parse_time("08:00"), parse_time("12:00"), is_active=False),
        WeeklySlot(5, 8, 2, parse_time("10:00"), parse_time("14:00")),
    ]
    bookings = [
        Booking(1, 7, monday, parse_time("09:00"), parse_time("10:30"), [1]),
        Booking(2, 7, monday, parse_time("13:00"), parse_time("14:00"), [2]),
        Booking(
            3, 7, monday, parse_time("15:00"), parse_time("16:00"), [2],
            status=AssignmentStatus.COMPLETED,
        ),
    ]
    return InMemorySlotRepository(slots), InMemoryBookingRepository(bookings)


def _parse_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def _build_scheduler(data_path: Optional[str]) -> SlotScheduler:
    if data_path:
        slot_repository, booking_repository = load_schedule_data(data_path)
    else:
        slot_repository, booking_repository = create_sample_data()
    return SlotScheduler(slot_repository, booking_repository)


def _get_slot(scheduler: SlotScheduler, slot_id: int) -> WeeklySlot:
    return scheduler.slot_repository.slots_by_ids([slot_id])[0]


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def run_demo(required_minutes: int = 480, output_path: Optional[str] = None) -> None:
    """Run a demo auto-selection on the sample schedule."""
    start_date = date.today()
    slot_repository, booking_repository = create_sample_data(start_date)
    scheduler = SlotScheduler(slot_repository, booking_repository)

    print(f"Auto-selecting {required_minutes} minutes for provider 7 from {start_date}...")
    selection, warnings = scheduler.auto_select_with_warnings(7, start_date, required_minutes)

    debug = DebugGenerator()
    print(debug.selection_to_string(selection))
    for warning in warnings.warnings:
        print(f"WARNING: {warning}")

    for d in selection.dates:
        print(debug.availability_to_string(d, scheduler.list_availability(7, d)))

    if output_path:
        _write_pdf(scheduler, 7, selection, output_path)
        print(f"PDF saved to: {output_path}")


def _write_pdf(scheduler: SlotScheduler, provider_id: int, selection, output_path: str) -> None:
    slots = [s for s in scheduler.slot_repository.slots if s.provider_id == provider_id]
    bookings = {
        d: scheduler.booking_repository.bookings_for(provider_id, d)
        for d in selection.dates
    }
    PDFGenerator().generate(
        selection,
        output_path,
        slots=slots,
        bookings=bookings,
        title=f"Provider {provider_id} Assignment Schedule",
    )


def run_capacity(args) -> None:
    scheduler = _build_scheduler(args.data)
    slot = _get_slot(scheduler, args.slot)
    capacity = scheduler.get_slot_capacity(slot, args.date, args.exclude, args.needed)
    _print_json(capacity.to_dict())


def run_next(args) -> None:
    scheduler = _build_scheduler(args.data)
    slot = _get_slot(scheduler, args.slot)
    found = scheduler.calculate_next_available_time(slot, args.date, args.minutes, args.exclude)
    start, end = found or (None, None)
    _print_json({
        "found": found is not None,
        "start": format_time(start),
        "end": format_time(end),
    })


def run_gaps(args) -> None:
    scheduler = _build_scheduler(args.data)
    slot = _get_slot(scheduler, args.slot)
    gaps = scheduler.find_available_gaps(slot, args.date, args.exclude)
    _print_json([gap.to_dict() for gap in gaps])


def run_overlap(args) -> None:
    scheduler = _build_scheduler(args.data)
    detector = scheduler.overlap_detector

    if args.slots:
        span = detector.candidate_envelope(args.date, args.slots)
    elif args.start and args.end:
        span = (args.start, args.end)
    else:
        raise ValueError("overlap needs --slots or both --start and --end")

    conflicts = []
    if span is not None:
        conflicts = detector.find_conflicts(
            args.provider, args.date, span[0], span[1], args.exclude
        )
    _print_json({
        "overlap": bool(conflicts),
        "start": format_time(span[0]) if span else None,
        "end": format_time(span[1]) if span else None,
        "conflicting_booking_ids": [b.id for b in conflicts],
    })


def run_availability(args) -> None:
    scheduler = _build_scheduler(args.data)
    entries = scheduler.list_availability(args.provider, args.date, args.min_duration)
    _print_json([entry.to_dict() for entry in entries])


def run_auto_select(args) -> None:
    scheduler = _build_scheduler(args.data)
    selection, warnings = scheduler.auto_select_with_warnings(
        args.provider, args.date, args.minutes, args.horizon
    )

    data = selection.to_dict()
    data["warnings"] = warnings.warnings
    _print_json(data)

    if args.report:
        availability = {
            d: scheduler.list_availability(args.provider, d) for d in selection.dates
        }
        DebugGenerator().generate(selection, args.report, availability)
        print(f"Report saved to: {args.report}", file=sys.stderr)
    if args.pdf:
        _write_pdf(scheduler, args.provider, selection, args.pdf)
        print(f"PDF saved to: {args.pdf}", file=sys.stderr)


def _add_data_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data",
        type=str,
        help="JSON file with slots and bookings (default: built-in sample data)",
    )


def _add_exclude_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--exclude", "-x",
        type=int,
        help="Booking id to ignore (the one being edited)",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="fmscheduler - Provider Slot Scheduling Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                                  Run demo on sample data
  %(prog)s demo --minutes 600 --output s.pdf     Demo with PDF output

  %(prog)s capacity --slot 1 --date 2024-01-15   Slot capacity on a date
  %(prog)s next --slot 1 --date 2024-01-15 --minutes 60
  %(prog)s overlap --provider 7 --date 2024-01-15 --slots 1 2
  %(prog)s auto-select --provider 7 --date 2024-01-15 --minutes 300 --data data.json
        """,
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demo auto-selection")
    demo_parser.add_argument(
        "--minutes", "-m",
        type=int,
        default=480,
        help="Duration to allocate in minutes (default: 480)",
    )
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )

    # Capacity command
    capacity_parser = subparsers.add_parser("capacity", help="Show slot capacity on a date")
    _add_data_argument(capacity_parser)
    capacity_parser.add_argument("--slot", "-s", type=int, required=True, help="Slot id")
    capacity_parser.add_argument("--date", "-d", type=_parse_date, required=True, help="YYYY-MM-DD")
    capacity_parser.add_argument(
        "--needed", "-n",
        type=int,
        help="Also report the next free range of this many minutes",
    )
    _add_exclude_argument(capacity_parser)

    # Next available command
    next_parser = subparsers.add_parser("next", help="Find the next free range in a slot")
    _add_data_argument(next_parser)
    next_parser.add_argument("--slot", "-s", type=int, required=True, help="Slot id")
    next_parser.add_argument("--date", "-d", type=_parse_date, required=True, help="YYYY-MM-DD")
    next_parser.add_argument("--minutes", "-m", type=int, required=True, help="Range length")
    _add_exclude_argument(next_parser)

    # Gaps command
    gaps_parser = subparsers.add_parser("gaps", help="List free gaps in a slot")
    _add_data_argument(gaps_parser)
    gaps_parser.add_argument("--slot", "-s", type=int, required=True, help="Slot id")
    gaps_parser.add_argument("--date", "-d", type=_parse_date, required=True, help="YYYY-MM-DD")
    _add_exclude_argument(gaps_parser)

    # Overlap command
    overlap_parser = subparsers.add_parser("overlap", help="Check for double-booking")
    _add_data_argument(overlap_parser)
    overlap_parser.add_argument("--provider", "-p", type=int, required=True, help="Provider id")
    overlap_parser.add_argument("--date", "-d", type=_parse_date, required=True, help="YYYY-MM-DD")
    overlap_parser.add_argument("--slots", type=int, nargs="+", help="Candidate slot ids")
    overlap_parser.add_argument("--start", type=parse_time, help="Manual start (HH:MM)")
    overlap_parser.add_argument("--end", type=parse_time, help="Manual end (HH:MM)")
    _add_exclude_argument(overlap_parser)

    # Availability command
    availability_parser = subparsers.add_parser(
        "availability",
        help="List a provider's slots on a date"
    )
    _add_data_argument(availability_parser)
    availability_parser.add_argument(
        "--provider", "-p", type=int, required=True, help="Provider id"
    )
    availability_parser.add_argument(
        "--date", "-d", type=_parse_date, required=True, help="YYYY-MM-DD"
    )
    availability_parser.add_argument(
        "--min-duration",
        type=int,
        help="Only list slots with at least this many free minutes",
    )

    # Auto-select command
    auto_parser = subparsers.add_parser(
        "auto-select",
        help="Select slot time for a duration across days"
    )
    _add_data_argument(auto_parser)
    auto_parser.add_argument("--provider", "-p", type=int, required=True, help="Provider id")
    auto_parser.add_argument("--date", "-d", type=_parse_date, required=True, help="Start date")
    auto_parser.add_argument("--minutes", "-m", type=int, required=True, help="Required minutes")
    auto_parser.add_argument(
        "--horizon",
        type=int,
        help="Days to search (default: 90)",
    )
    auto_parser.add_argument("--pdf", type=str, help="Write a PDF schedule sheet")
    auto_parser.add_argument("--report", type=str, help="Write a text report")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )

    commands = {
        "capacity": run_capacity,
        "next": run_next,
        "gaps": run_gaps,
        "overlap": run_overlap,
        "availability": run_availability,
        "auto-select": run_auto_select,
    }

    try:
        if args.command == "demo":
            run_demo(args.minutes, args.output)
            return 0
        elif args.command in commands:
            commands[args.command](args)
            return 0
        else:
            parser.print_help()
            return 1
    except (SchedulingError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
