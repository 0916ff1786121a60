"""Double-booking detection for provider assignments.

The detector answers "would this candidate collide with an existing
booking?" as a plain boolean. It is used as a live check while an
assignment is being edited and as the final guard right before a booking
is committed.

Concurrency contract: two callers can both see "no overlap" for the same
provider and date before either commits. The check and the insert of the
new booking MUST be wrapped in one atomic unit by the caller (a transaction
or row lock serializing bookings per provider and date). The detector
itself only reads.
"""

import logging
from datetime import date, time
from typing import Iterable, Optional

from fmscheduler.domain.errors import InvalidRangeError
from fmscheduler.domain.intervals import envelope, overlaps
from fmscheduler.domain.models import Booking, day_of_week
from fmscheduler.domain.repositories import BookingRepository, WeeklySlotRepository

logger = logging.getLogger(__name__)


class OverlapDetector:
    """Detects conflicts between candidate time ranges and existing bookings.

    Example:
        >>> detector = OverlapDetector(slot_repository, booking_repository)
        >>> if detector.has_multi_slot_overlap(7, date(2024, 1, 15), [1, 2]):
        ...     reject_assignment()
    """

    def __init__(
        self,
        slot_repository: WeeklySlotRepository,
        booking_repository: BookingRepository,
    ):
        self.slot_repository = slot_repository
        self.booking_repository = booking_repository

    def candidate_envelope(
        self,
        scheduled_date: date,
        candidate_slot_ids: Iterable[int],
    ) -> Optional[tuple[time, time]]:
        """Outer span of the candidate slots that fall on the date's weekday.

        Raises:
            SlotNotFoundError: If a candidate id is unknown.
        """
        weekday = day_of_week(scheduled_date)
        slots = self.slot_repository.slots_by_ids(candidate_slot_ids)
        return envelope(
            (slot.start_time, slot.end_time)
            for slot in slots
            if slot.day_of_week == weekday
        )

    def has_multi_slot_overlap(
        self,
        provider_id: int,
        scheduled_date: date,
        candidate_slot_ids: Iterable[int],
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        """Check whether a set of candidate slots collides with a booking.

        The check is conservative: the candidates are reduced to their
        envelope (earliest start to latest end), so a booking sitting in a
        hole between two candidate slots still counts as a conflict.
        Candidates on another weekday are left out of the envelope;
        ``AssignmentValidator`` rejects such requests with
        ``SLOT_DAY_MISMATCH``.

        Args:
            provider_id: Provider the assignment is for.
            scheduled_date: Concrete date of the assignment.
            candidate_slot_ids: Weekly slots the assignment would occupy.
            exclude_booking_id: Booking under edit, ignored so it cannot
                conflict with itself.

        Returns:
            True if any existing booking overlaps the envelope.
        """
        span = self.candidate_envelope(scheduled_date, candidate_slot_ids)
        if span is None:
            return False
        return self.has_overlap(
            provider_id, scheduled_date, span[0], span[1], exclude_booking_id
        )

    def has_overlap(
        self,
        provider_id: int,
        scheduled_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        """Check whether an explicit time range collides with a booking."""
        return bool(
            self.find_conflicts(
                provider_id, scheduled_date, start_time, end_time, exclude_booking_id
            )
        )

    def find_conflicts(
        self,
        provider_id: int,
        scheduled_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[int] = None,
    ) -> list[Booking]:
        """Get the bookings that overlap an explicit time range.

        Raises:
            InvalidRangeError: If the range does not start before it ends.
        """
        if start_time >= end_time:
            raise InvalidRangeError(start_time, end_time, "manual time range")
        bookings = self.booking_repository.bookings_for(
            provider_id, scheduled_date, exclude_booking_id
        )
        conflicts = [
            b for b in bookings
            if overlaps(start_time, end_time, b.start_time, b.end_time)
        ]
        if conflicts:
            logger.debug(
                "Provider %s on %s: %s-%s overlaps booking(s) %s",
                provider_id,
                scheduled_date,
                start_time.strftime("%H:%M"),
                end_time.strftime("%H:%M"),
                [b.id for b in conflicts],
            )
        return conflicts
