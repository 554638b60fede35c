"""
Range availability: which days of a horizon have at least one open slot.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from .exceptions import InvalidAvailabilityParams
from .models import AvailabilityParams
from .slot_generator import DATE_FORMAT, SlotGenerator, resolve_now

DEFAULT_DAYS_AHEAD = 30


class AvailabilityScanner:
    """
    Runs the slot generator over consecutive days starting today.

    The scanner is horizon-based, not month-aware: month views scan a horizon
    long enough to cover the month and filter with :func:`filter_month`.
    """

    def __init__(self, params: AvailabilityParams):
        self.params = params
        self._generator = SlotGenerator(params)

    def available_days(
        self,
        days_ahead: int = DEFAULT_DAYS_AHEAD,
        now: Optional[datetime] = None
    ) -> List[str]:
        """
        Return ``YYYY-MM-DD`` strings of days with at least one slot.

        Args:
            days_ahead: Number of calendar days to scan, today included
            now: Evaluation instant, fixed for the whole scan

        Returns:
            Ascending list of date strings
        """
        if not isinstance(days_ahead, int) or days_ahead < 0:
            raise InvalidAvailabilityParams(f"days_ahead must be zero or more, got {days_ahead!r}")

        current_now = resolve_now(now, self.params.timezone)
        today = current_now.start_of("day")
        available: List[str] = []

        for offset in range(days_ahead):
            day = today.add(days=offset)
            if self._generator.slots_for(day, current_now):
                available.append(day.format(DATE_FORMAT))

        return available


def compute_available_days(
    params: AvailabilityParams,
    days_ahead: int = DEFAULT_DAYS_AHEAD,
    now: Optional[datetime] = None
) -> List[str]:
    """Days with at least one slot in the next ``days_ahead`` days."""
    return AvailabilityScanner(params).available_days(days_ahead=days_ahead, now=now)


def filter_month(dates: Iterable[str], year: int, month: int) -> List[str]:
    """Keep the ``YYYY-MM-DD`` strings that fall in ``year``/``month``."""
    prefix = f"{year:04d}-{month:02d}-"
    return [d for d in dates if d.startswith(prefix)]
