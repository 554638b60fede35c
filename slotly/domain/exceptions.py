"""
Domain-specific exception hierarchy for the slotly booking application.
"""

from typing import Optional


class SlotlyError(Exception):
    """Base class for all application-level errors."""


class InvalidAvailabilityParams(SlotlyError, ValueError):
    """Raised when schedule or availability input is malformed."""


class CatalogLookupError(SlotlyError):
    """Raised when a business or service cannot be resolved locally."""


class UnknownBusinessError(CatalogLookupError):
    """Raised for a business id that is not configured."""


class UnknownServiceError(CatalogLookupError):
    """Raised for a service id the business does not offer."""


class BookingAPIError(SlotlyError):
    """Raised when the booking API is unreachable or answers with a non-2xx status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class AuthenticationError(SlotlyError):
    """Raised when a session token cannot be obtained."""


class AvailabilityUnavailableError(SlotlyError):
    """Raised when availability can be served neither remotely nor locally."""
