"""
Core business logic for generating bookable slots for a single day.

Pure domain logic: no API calls, no database, no I/O. The only ambient input
is "now", which callers may pass explicitly to keep results reproducible.
"""

import logging
from datetime import datetime
from typing import List, Optional

import pendulum
from pendulum import DateTime

from .exceptions import InvalidAvailabilityParams
from .models import AvailabilityParams, Slot, TimeRange

logger = logging.getLogger(__name__)

DATE_FORMAT = "YYYY-MM-DD"
LABEL_FORMAT = "h:mm A"


def parse_date(date_iso: str, timezone: str) -> DateTime:
    """
    Parse a ``YYYY-MM-DD`` string to the start of that day in ``timezone``.

    Raises:
        InvalidAvailabilityParams: If the string is not a calendar date
    """
    try:
        return pendulum.from_format(date_iso, DATE_FORMAT, tz=timezone).start_of("day")
    except (TypeError, ValueError) as exc:
        raise InvalidAvailabilityParams(f"Date must be formatted YYYY-MM-DD, got {date_iso!r}") from exc


def resolve_now(now: Optional[datetime], timezone: str) -> DateTime:
    """Return ``now`` as a pendulum DateTime in ``timezone`` (current instant if omitted)."""
    if now is None:
        return pendulum.now(timezone)
    return pendulum.instance(now, tz=timezone).in_timezone(timezone)


class SlotGenerator:
    """
    Computes the ordered bookable slots of one calendar day.

    Algorithm, per open interval of the day's weekday:
    1. Anchor the interval on the date in the business timezone
    2. Probe start times every 15 minutes from opening
    3. Stop once a window of service duration + buffer no longer fits before closing
    4. Skip start times at or before "now"
    5. Skip windows overlapping a non-cancelled reservation of the business
    """

    GRANULARITY_MINUTES = 15

    def __init__(self, params: AvailabilityParams):
        self.params = params
        self._busy_ranges = params.busy_ranges()

    def slots_for_day(self, date_iso: str, now: Optional[datetime] = None) -> List[Slot]:
        """
        Return the bookable slots of ``date_iso``, ascending by start time.

        Args:
            date_iso: Calendar date as ``YYYY-MM-DD``
            now: Evaluation instant; defaults to the current time

        Returns:
            List of Slot objects, empty when the business is closed or fully booked
        """
        day = parse_date(date_iso, self.params.timezone)
        return self.slots_for(day, resolve_now(now, self.params.timezone))

    def slots_for(self, day: DateTime, now: DateTime) -> List[Slot]:
        """Slots for an already-parsed day at a fixed ``now``."""
        intervals = self.params.schedule.intervals_for(day.isoweekday())
        if not intervals:
            return []

        slots: List[Slot] = []
        for hours in intervals:
            slots.extend(self._scan_window(hours.window_for(day), now))

        logger.debug("%s: %d slot(s) for %s", self.params.business_id, len(slots), day.format(DATE_FORMAT))
        return slots

    def _scan_window(self, window: TimeRange, now: DateTime) -> List[Slot]:
        slot_length = self.params.slot_length_minutes
        slots: List[Slot] = []
        cursor = window.start

        while cursor < window.end:
            candidate_end = cursor.add(minutes=slot_length)

            # Later candidates only end later
            if candidate_end > window.end:
                break

            if cursor > now and not self._conflicts(TimeRange(start=cursor, end=candidate_end)):
                slots.append(
                    Slot(
                        start_at=cursor,
                        end_at=candidate_end,
                        label=cursor.format(LABEL_FORMAT, locale="en"),
                    )
                )

            cursor = cursor.add(minutes=self.GRANULARITY_MINUTES)

        return slots

    def _conflicts(self, candidate: TimeRange) -> bool:
        for busy in self._busy_ranges:
            if busy.start >= candidate.end:
                # Sorted by start: nothing later can overlap
                return False
            if candidate.overlaps(busy):
                return True
        return False


def compute_slots_for_day(
    params: AvailabilityParams,
    date_iso: str,
    now: Optional[datetime] = None
) -> List[Slot]:
    """Bookable slots for ``date_iso``; see :class:`SlotGenerator`."""
    return SlotGenerator(params).slots_for_day(date_iso, now=now)


def is_date_available(
    params: AvailabilityParams,
    date_iso: str,
    now: Optional[datetime] = None
) -> bool:
    """Check if a specific date has at least one slot."""
    return bool(compute_slots_for_day(params, date_iso, now=now))
