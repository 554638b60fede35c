"""
Tests for the availability scanner.
"""

import pendulum
import pytest

from slotly.domain.availability_scanner import AvailabilityScanner, compute_available_days, filter_month
from slotly.domain.exceptions import InvalidAvailabilityParams
from slotly.domain.models import AvailabilityParams, ExistingReservation, WeekdayHours

TZ = "Europe/Berlin"
MONDAY_MORNING = pendulum.parse("2024-11-25 08:00", tz=TZ)


def _params(weekday: int, start="10:00", end="12:00", duration=30, reservations=()):
    return AvailabilityParams(
        working_hours=[WeekdayHours(weekday=weekday, start=start, end=end)],
        service_duration_minutes=duration,
        business_id="b1",
        existing_reservations=reservations,
        timezone=TZ,
    )


class TestAvailabilityScanner:
    """Tests for AvailabilityScanner."""

    def test_single_open_weekday_in_one_week(self):
        """Open on Wednesdays only: exactly one day in a 7-day horizon."""
        days = compute_available_days(_params(weekday=3), days_ahead=7, now=MONDAY_MORNING)

        assert days == ["2024-11-27"]

    def test_horizon_includes_today(self):
        days = compute_available_days(_params(weekday=1), days_ahead=1, now=MONDAY_MORNING)

        assert days == ["2024-11-25"]

    def test_today_after_closing_is_skipped(self):
        now = pendulum.parse("2024-11-25 13:00", tz=TZ)

        days = compute_available_days(_params(weekday=1), days_ahead=8, now=now)

        assert days == ["2024-12-02"]

    def test_fully_booked_day_is_skipped(self):
        reservation = ExistingReservation(business_id="b1", start_at=pendulum.parse("2024-11-27 10:00", tz=TZ))
        params = _params(weekday=3, start="10:00", end="11:00", duration=60, reservations=[reservation])

        days = compute_available_days(params, days_ahead=14, now=MONDAY_MORNING)

        assert days == ["2024-12-04"]

    def test_zero_horizon_is_empty(self):
        assert AvailabilityScanner(_params(weekday=1)).available_days(days_ahead=0, now=MONDAY_MORNING) == []

    def test_negative_horizon_rejected(self):
        with pytest.raises(InvalidAvailabilityParams):
            AvailabilityScanner(_params(weekday=1)).available_days(days_ahead=-1, now=MONDAY_MORNING)

    def test_default_horizon_is_thirty_days(self):
        days = AvailabilityScanner(_params(weekday=1)).available_days(now=MONDAY_MORNING)

        # Mondays from 2024-11-25 through 2024-12-24
        assert days == ["2024-11-25", "2024-12-02", "2024-12-09", "2024-12-16", "2024-12-23"]


class TestFilterMonth:
    """Tests for month filtering of scanned days."""

    def test_filter_month(self):
        dates = ["2024-11-29", "2024-12-02", "2024-12-31", "2025-12-01"]

        assert filter_month(dates, 2024, 12) == ["2024-12-02", "2024-12-31"]

    def test_single_digit_month_is_padded(self):
        assert filter_month(["2025-01-06", "2025-10-06"], 2025, 1) == ["2025-01-06"]
