"""
Domain models for schedules, reservations and bookable slots.
"""

import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import InvalidAvailabilityParams

DEFAULT_TIMEZONE = "UTC"

_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

WEEKDAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}


def parse_hhmm(value: str) -> time:
    """
    Parse a zero-padded 24h ``HH:mm`` string.

    Raises:
        InvalidAvailabilityParams: If the string is not a valid ``HH:mm`` time
    """
    match = _HHMM_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidAvailabilityParams(f"Time must be zero-padded HH:mm, got {value!r}")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def validate_timezone(name: str) -> str:
    """Ensure ``name`` is a known IANA timezone identifier."""
    try:
        pendulum.timezone(name)
    except Exception as exc:
        raise InvalidAvailabilityParams(f"Unknown timezone: {name!r}") from exc
    return name


def _is_plain_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not overlap."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class WeekdayHours:
    """
    One recurring open interval on an ISO weekday (1=Monday, 7=Sunday).

    ``start`` and ``end`` are zero-padded ``HH:mm`` strings.
    """
    weekday: int
    start: str
    end: str

    def __post_init__(self):
        if not _is_plain_int(self.weekday) or not 1 <= self.weekday <= 7:
            raise InvalidAvailabilityParams(
                f"Weekday must be between 1 (Monday) and 7 (Sunday), got {self.weekday!r}"
            )
        if parse_hhmm(self.start) >= parse_hhmm(self.end):
            raise InvalidAvailabilityParams(
                f"Opening time {self.start} must be before closing time {self.end} "
                f"on {WEEKDAY_NAMES[self.weekday]}"
            )

    @property
    def start_time(self) -> time:
        return parse_hhmm(self.start)

    @property
    def end_time(self) -> time:
        return parse_hhmm(self.end)

    def window_for(self, day: DateTime) -> TimeRange:
        """Anchor this interval on ``day`` (keeps the day's timezone)."""
        start = day.set(hour=self.start_time.hour, minute=self.start_time.minute, second=0, microsecond=0)
        end = day.set(hour=self.end_time.hour, minute=self.end_time.minute, second=0, microsecond=0)
        return TimeRange(start=start, end=end)


class WeeklySchedule:
    """
    Recurring weekly open hours, any number of disjoint intervals per weekday.

    Intervals are kept sorted by opening time; weekdays without entries are closed.
    """

    def __init__(self, hours: Sequence[WeekdayHours]):
        grouped: Dict[int, List[WeekdayHours]] = defaultdict(list)
        for entry in hours:
            grouped[entry.weekday].append(entry)

        self._intervals: Dict[int, Tuple[WeekdayHours, ...]] = {}
        for weekday, entries in grouped.items():
            ordered = sorted(entries, key=lambda e: e.start)
            for previous, current in zip(ordered, ordered[1:]):
                if current.start < previous.end:
                    raise InvalidAvailabilityParams(
                        f"Overlapping working hours on {WEEKDAY_NAMES[weekday]}: "
                        f"{previous.start}-{previous.end} and {current.start}-{current.end}"
                    )
            self._intervals[weekday] = tuple(ordered)

    def intervals_for(self, weekday: int) -> Tuple[WeekdayHours, ...]:
        """Return the open intervals for an ISO weekday, empty when closed."""
        return self._intervals.get(weekday, ())

    def is_open_on(self, weekday: int) -> bool:
        return bool(self._intervals.get(weekday))

    @property
    def open_weekdays(self) -> List[int]:
        return sorted(self._intervals)


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ExistingReservation:
    """
    A booking made through the external confirmation flow.

    ``duration_minutes`` is optional; when missing the occupied interval is
    approximated with the duration of the service currently being booked.
    """
    business_id: str
    start_at: DateTime
    status: ReservationStatus = ReservationStatus.CONFIRMED
    duration_minutes: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.start_at, datetime):
            raise InvalidAvailabilityParams(
                f"Reservation start must be a datetime, got {self.start_at!r}"
            )
        if self.start_at.tzinfo is None or self.start_at.utcoffset() is None:
            raise InvalidAvailabilityParams(
                f"Reservation start must be timezone-aware, got {self.start_at.isoformat()}"
            )
        if not isinstance(self.start_at, DateTime):
            object.__setattr__(self, "start_at", pendulum.instance(self.start_at))

        if self.duration_minutes is not None and (
            not _is_plain_int(self.duration_minutes) or self.duration_minutes <= 0
        ):
            raise InvalidAvailabilityParams(
                f"Reservation duration must be a positive number of minutes, got {self.duration_minutes!r}"
            )

    def blocks(self, business_id: str) -> bool:
        """Whether this reservation constrains availability of ``business_id``."""
        return self.status != ReservationStatus.CANCELLED and self.business_id == business_id

    def occupied_range(self, fallback_duration_minutes: int) -> TimeRange:
        minutes = self.duration_minutes or fallback_duration_minutes
        return TimeRange(start=self.start_at, end=self.start_at.add(minutes=minutes))


@dataclass(frozen=True)
class Slot:
    """
    A bookable appointment window.
    """
    start_at: DateTime
    end_at: DateTime
    label: str

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_at, end=self.end_at)


@dataclass(frozen=True)
class AvailabilityParams:
    """
    Input aggregate for one availability computation.

    Validated once on construction so the slot scan never sees malformed data.
    """
    working_hours: Sequence[WeekdayHours]
    service_duration_minutes: int
    business_id: str
    existing_reservations: Sequence[ExistingReservation] = ()
    buffer_minutes: int = 0
    timezone: str = DEFAULT_TIMEZONE
    schedule: WeeklySchedule = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not _is_plain_int(self.service_duration_minutes) or self.service_duration_minutes <= 0:
            raise InvalidAvailabilityParams(
                f"Service duration must be a positive number of minutes, got {self.service_duration_minutes!r}"
            )
        if not _is_plain_int(self.buffer_minutes) or self.buffer_minutes < 0:
            raise InvalidAvailabilityParams(
                f"Buffer must be zero or more minutes, got {self.buffer_minutes!r}"
            )
        validate_timezone(self.timezone)

        object.__setattr__(self, "working_hours", tuple(self.working_hours))
        object.__setattr__(self, "existing_reservations", tuple(self.existing_reservations))
        object.__setattr__(self, "schedule", WeeklySchedule(self.working_hours))

    @property
    def slot_length_minutes(self) -> int:
        """Service duration plus buffer."""
        return self.service_duration_minutes + self.buffer_minutes

    def busy_ranges(self) -> List[TimeRange]:
        """Occupied intervals of non-cancelled reservations for this business."""
        return sorted(
            (
                reservation.occupied_range(self.service_duration_minutes)
                for reservation in self.existing_reservations
                if reservation.blocks(self.business_id)
            ),
            key=lambda r: r.start,
        )
