"""Multi-day auto-selection of slot time for a required duration.

The selector walks forward from a start date one day at a time and, within
a day, one slot at a time in start-time order. It takes the earliest free
time it can find until the required minutes are collected or the horizon
runs out. Chosen fragments are never revisited, which keeps the result
deterministic at the cost of sometimes using more fragments than a perfect
packing would.

Slots are measured independently against the committed bookings only.
When two slots of the same day overlap each other, fragments taken from
both can cover the same minutes, and those minutes count twice towards
the required duration.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from fmscheduler.domain.models import (
    SchedulingConfig,
    SelectionFragment,
    SelectionResult,
    day_of_week,
)
from fmscheduler.domain.repositories import WeeklySlotRepository
from fmscheduler.scheduling.capacity import CapacityCalculator

logger = logging.getLogger(__name__)


class MultiDayAutoSelector:
    """Greedy first-fit selector across slots and days.

    Example:
        >>> selector = MultiDayAutoSelector(slot_repository, calculator)
        >>> result = selector.auto_select(7, date(2024, 1, 15), 600)
        >>> result.fully_satisfied, len(result.fragments)
        (True, 2)
    """

    def __init__(
        self,
        slot_repository: WeeklySlotRepository,
        capacity_calculator: CapacityCalculator,
        config: Optional[SchedulingConfig] = None,
    ):
        self.slot_repository = slot_repository
        self.capacity_calculator = capacity_calculator
        self.config = config or SchedulingConfig()

    def auto_select(
        self,
        provider_id: int,
        start_date: date,
        required_minutes: int,
        max_horizon_days: Optional[int] = None,
    ) -> SelectionResult:
        """Select slot time covering a duration, possibly across days.

        Args:
            provider_id: Provider whose slots are searched.
            start_date: First date to search.
            required_minutes: Duration to collect.
            max_horizon_days: Number of days to search before giving up;
                defaults to ``config.max_horizon_days``.

        Returns:
            SelectionResult; ``fully_satisfied`` is False when the horizon
            ran out first, which callers must surface as a warning.
        """
        if required_minutes <= 0:
            raise ValueError(f"required_minutes must be positive, got {required_minutes}")
        horizon = self.config.max_horizon_days if max_horizon_days is None else max_horizon_days
        if horizon < 0:
            raise ValueError(f"max_horizon_days must not be negative, got {horizon}")

        result = SelectionResult(start_date=start_date, required_minutes=required_minutes)
        current = start_date

        while result.accumulated_minutes < required_minutes and result.days_processed < horizon:
            if self._fill_day(provider_id, current, result):
                break
            current += timedelta(days=1)
            result.days_processed += 1

        if result.fully_satisfied:
            logger.info(
                "Provider %s: allocated %d/%d minutes in %d fragment(s) from %s",
                provider_id,
                result.accumulated_minutes,
                required_minutes,
                len(result.fragments),
                start_date,
            )
        else:
            logger.warning(
                "Provider %s: only %d of %d minutes available within %d day(s) of %s",
                provider_id,
                result.accumulated_minutes,
                required_minutes,
                result.span_days,
                start_date,
            )
        return result

    def _fill_day(self, provider_id: int, current: date, result: SelectionResult) -> bool:
        """Take free time from one day's slots.

        Returns:
            True once the required minutes have been collected.
        """
        slots = self.slot_repository.active_slots_for(provider_id, day_of_week(current))
        logger.debug("%s: %d active slot(s)", current, len(slots))

        for slot in slots:
            capacity = self.capacity_calculator.get_slot_capacity(slot, current)
            if capacity.available_minutes <= 0:
                continue

            want = min(
                capacity.available_minutes,
                result.required_minutes - result.accumulated_minutes,
            )
            gap = self.capacity_calculator.calculate_next_available_time(slot, current, want)
            if gap is None:
                logger.debug(
                    "%s: slot %s has %d free minutes but no contiguous %d",
                    current, slot.id, capacity.available_minutes, want,
                )
                continue

            result.fragments.append(
                SelectionFragment(
                    slot_id=slot.id,
                    scheduled_date=current,
                    start_time=gap[0],
                    end_time=gap[1],
                    minutes=want,
                )
            )
            result.accumulated_minutes += want
            logger.debug(
                "%s: took %d minutes from slot %s (%s-%s)",
                current, want, slot.id,
                gap[0].strftime("%H:%M"), gap[1].strftime("%H:%M"),
            )

            if result.accumulated_minutes >= result.required_minutes:
                return True
        return False
