"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_facade import (
    AvailabilityBackend,
    AvailabilityFacade,
    LatestQueryTracker,
    LocalAvailabilityBackend,
    build_availability_facade,
)

__all__ = [
    "AvailabilityBackend",
    "AvailabilityFacade",
    "LatestQueryTracker",
    "LocalAvailabilityBackend",
    "build_availability_facade",
]
