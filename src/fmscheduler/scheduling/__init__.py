"""Scheduling engine for slot capacity and multi-day auto-selection."""

from fmscheduler.scheduling.auto_selector import MultiDayAutoSelector
from fmscheduler.scheduling.capacity import CapacityCalculator
from fmscheduler.scheduling.scheduler import SlotScheduler

__all__ = [
    "CapacityCalculator",
    "MultiDayAutoSelector",
    "SlotScheduler",
]
