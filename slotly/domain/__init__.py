"""
Domain layer - Pure availability logic without external dependencies.
"""

from .models import (
    AvailabilityParams,
    ExistingReservation,
    ReservationStatus,
    Slot,
    TimeRange,
    WeekdayHours,
    WeeklySchedule,
)
from .slot_generator import SlotGenerator, compute_slots_for_day, is_date_available
from .availability_scanner import AvailabilityScanner, compute_available_days, filter_month

__all__ = [
    "AvailabilityParams",
    "ExistingReservation",
    "ReservationStatus",
    "Slot",
    "TimeRange",
    "WeekdayHours",
    "WeeklySchedule",
    "SlotGenerator",
    "compute_slots_for_day",
    "is_date_available",
    "AvailabilityScanner",
    "compute_available_days",
    "filter_month",
]
