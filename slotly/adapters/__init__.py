"""
Adapters layer - External integrations (booking API, local catalog).
"""

from .booking_api_client import BookingApiClient, RemoteAvailabilityBackend
from .local_catalog import LocalCatalog
from .session_authenticator import SessionAuthenticator, SessionState

__all__ = [
    "BookingApiClient",
    "RemoteAvailabilityBackend",
    "LocalCatalog",
    "SessionAuthenticator",
    "SessionState",
]
