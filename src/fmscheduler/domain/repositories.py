"""Lookup interfaces consumed by the scheduling core.

The core never reaches for a data store directly. It is handed a
``BookingRepository`` and a ``WeeklySlotRepository`` and treats both as
synchronous, read-only queries. The in-memory implementations below back
the tests and the command-line tool; an application would implement the
same interfaces on top of its own persistence layer.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from fmscheduler.domain.errors import SlotNotFoundError
from fmscheduler.domain.models import (
    Booking,
    SchedulingConfig,
    WeeklySlot,
)


class BookingRepository(ABC):
    """Abstract source of existing bookings."""

    @abstractmethod
    def bookings_for(
        self,
        provider_id: int,
        scheduled_date: date,
        exclude_id: Optional[int] = None,
    ) -> list[Booking]:
        """Get every booking occupying a provider's time on a date.

        Args:
            provider_id: Service provider to look up.
            scheduled_date: Exact calendar date.
            exclude_id: Booking id to leave out (the one being edited).

        Returns:
            Bookings ordered by start time.
        """
        pass


class WeeklySlotRepository(ABC):
    """Abstract source of weekly availability slots."""

    @abstractmethod
    def active_slots_for(self, provider_id: int, day_of_week: int) -> list[WeeklySlot]:
        """Get active slots of a provider for a weekday, ordered by start time."""
        pass

    @abstractmethod
    def slots_by_ids(self, slot_ids: Iterable[int]) -> list[WeeklySlot]:
        """Resolve slot ids to slots, active or not.

        Raises:
            SlotNotFoundError: If any id is unknown.
        """
        pass


@dataclass
class InMemoryBookingRepository(BookingRepository):
    """Booking store kept in a list.

    Bookings whose status is in ``config.released_statuses`` are ignored,
    matching a store that stops counting completed work against capacity.
    """

    bookings: list[Booking] = field(default_factory=list)
    config: SchedulingConfig = field(default_factory=SchedulingConfig)

    def add(self, booking: Booking) -> Booking:
        """Store a booking and return it."""
        self.bookings.append(booking)
        return booking

    def remove(self, booking_id: int) -> None:
        """Drop a booking by id (no-op when absent)."""
        self.bookings = [b for b in self.bookings if b.id != booking_id]

    def next_id(self) -> int:
        return max((b.id for b in self.bookings), default=0) + 1

    def bookings_for(
        self,
        provider_id: int,
        scheduled_date: date,
        exclude_id: Optional[int] = None,
    ) -> list[Booking]:
        result = [
            b
            for b in self.bookings
            if b.provider_id == provider_id
            and b.scheduled_date == scheduled_date
            and b.status not in self.config.released_statuses
            and (exclude_id is None or b.id != exclude_id)
        ]
        result.sort(key=lambda b: (b.start_time, b.end_time))
        return result


@dataclass
class InMemorySlotRepository(WeeklySlotRepository):
    """Weekly slot store indexed by id and by (provider, weekday)."""

    slots: list[WeeklySlot] = field(default_factory=list)

    def __post_init__(self):
        self._by_id: dict[int, WeeklySlot] = {}
        self._by_day: dict[tuple[int, int], list[WeeklySlot]] = defaultdict(list)
        for slot in self.slots:
            self._index(slot)

    def _index(self, slot: WeeklySlot) -> None:
        self._by_id[slot.id] = slot
        self._by_day[(slot.provider_id, slot.day_of_week)].append(slot)

    def add(self, slot: WeeklySlot) -> WeeklySlot:
        """Store a slot and return it."""
        if slot.id in self._by_id:
            raise ValueError(f"Duplicate time slot id: {slot.id}")
        self.slots.append(slot)
        self._index(slot)
        return slot

    def active_slots_for(self, provider_id: int, day_of_week: int) -> list[WeeklySlot]:
        slots = [s for s in self._by_day.get((provider_id, day_of_week), []) if s.is_active]
        return sorted(slots, key=lambda s: (s.start_time, s.end_time))

    def slots_by_ids(self, slot_ids: Iterable[int]) -> list[WeeklySlot]:
        slot_ids = list(slot_ids)
        missing = [sid for sid in slot_ids if sid not in self._by_id]
        if missing:
            raise SlotNotFoundError(missing)
        return [self._by_id[sid] for sid in slot_ids]

    def providers(self) -> list[int]:
        """Provider ids that own at least one slot."""
        return sorted({s.provider_id for s in self.slots})

