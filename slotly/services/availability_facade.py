"""
Query facade for month and day availability.

The facade exposes one contract regardless of who answers it: the booking API
(``RemoteAvailabilityBackend``) or the local engine
(``LocalAvailabilityBackend``). When the remote backend fails, the same query
is re-derived locally so the booking UI never blocks on the backend for this
read path.
"""

from __future__ import annotations

import itertools
import logging
from datetime import datetime
from typing import Callable, Optional, Protocol

import pendulum

from ..adapters.booking_api_client import BookingApiClient, RemoteAvailabilityBackend
from ..adapters.local_catalog import LocalCatalog
from ..adapters.session_authenticator import SessionAuthenticator
from ..config import AppConfig
from ..domain.availability_scanner import AvailabilityScanner, filter_month
from ..domain.exceptions import (
    AuthenticationError,
    AvailabilityUnavailableError,
    BookingAPIError,
    CatalogLookupError,
    InvalidAvailabilityParams,
)
from ..domain.slot_generator import SlotGenerator, resolve_now
from ..schemas import (
    DayAvailability,
    DayAvailabilityQuery,
    MonthAvailability,
    MonthAvailabilityQuery,
    TimeSlotPayload,
)

logger = logging.getLogger(__name__)

REMOTE_FAILURES = (BookingAPIError, AuthenticationError)
LOCAL_FAILURES = (CatalogLookupError, InvalidAvailabilityParams)


class AvailabilityBackend(Protocol):
    """Protocol describing the availability queries the booking UI needs."""

    async def get_month_availability(self, query: MonthAvailabilityQuery) -> MonthAvailability:
        """Return the days of a month with at least one open slot."""

    async def get_day_availability(self, query: DayAvailabilityQuery) -> DayAvailability:
        """Return the open slots of one date."""


class LocalAvailabilityBackend:
    """
    Availability computed on the spot from locally known schedules and bookings.

    ``clock`` supplies "now"; it defaults to the current instant.
    """

    def __init__(
        self,
        catalog: LocalCatalog,
        month_scan_days: int = 90,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._catalog = catalog
        self._month_scan_days = month_scan_days
        self._clock = clock

    def _now(self) -> Optional[datetime]:
        return self._clock() if self._clock else None

    async def get_month_availability(self, query: MonthAvailabilityQuery) -> MonthAvailability:
        params = self._catalog.params_for(query.business_id, query.service_id)
        now = resolve_now(self._now(), params.timezone)

        # Scan far enough to reach the end of the requested month
        month_end = pendulum.datetime(query.year, query.month, 1, tz=params.timezone).end_of("month")
        days_to_month_end = now.start_of("day").diff(month_end, False).in_days() + 1
        horizon = max(self._month_scan_days, days_to_month_end)

        all_days = AvailabilityScanner(params).available_days(days_ahead=horizon, now=now)
        return MonthAvailability(available_dates=filter_month(all_days, query.year, query.month))

    async def get_day_availability(self, query: DayAvailabilityQuery) -> DayAvailability:
        params = self._catalog.params_for(query.business_id, query.service_id)
        slots = SlotGenerator(params).slots_for_day(query.date, now=self._now())

        return DayAvailability(
            date=query.date,
            slots=[
                TimeSlotPayload(
                    start_time=slot.start_at.format("HH:mm"),
                    end_time=slot.end_at.format("HH:mm"),
                )
                for slot in slots
            ],
        )


class AvailabilityFacade:
    """
    Serves availability from a primary backend with an optional local fallback.

    Backends are plugged in by composition, so the remote client, the local
    engine or test stubs can be combined freely.
    """

    def __init__(
        self,
        primary: AvailabilityBackend,
        fallback: Optional[AvailabilityBackend] = None,
    ) -> None:
        self._primary = primary
        self._fallback = fallback

    async def get_month_availability(self, query: MonthAvailabilityQuery) -> MonthAvailability:
        """Days of ``query.year``/``query.month`` with at least one open slot."""
        try:
            return await self._primary.get_month_availability(query)
        except REMOTE_FAILURES as exc:
            if self._fallback is None:
                raise AvailabilityUnavailableError(f"Unable to load availability: {exc}") from exc
            logger.warning("Remote month availability failed (%s); computing locally", exc)
            return await self._with_fallback(self._fallback.get_month_availability, query, exc)
        except LOCAL_FAILURES as exc:
            raise AvailabilityUnavailableError(f"Unable to load availability: {exc}") from exc

    async def get_day_availability(self, query: DayAvailabilityQuery) -> DayAvailability:
        """Open slots of ``query.date``."""
        try:
            return await self._primary.get_day_availability(query)
        except REMOTE_FAILURES as exc:
            if self._fallback is None:
                raise AvailabilityUnavailableError(f"Unable to load availability: {exc}") from exc
            logger.warning("Remote day availability failed (%s); computing locally", exc)
            return await self._with_fallback(self._fallback.get_day_availability, query, exc)
        except LOCAL_FAILURES as exc:
            raise AvailabilityUnavailableError(f"Unable to load availability: {exc}") from exc

    @staticmethod
    async def _with_fallback(method, query, remote_error: Exception):
        try:
            return await method(query)
        except LOCAL_FAILURES as local_error:
            logger.error("Local fallback cannot serve %s: %s", query, local_error)
            raise AvailabilityUnavailableError(
                f"Unable to load availability: {remote_error}"
            ) from remote_error


class LatestQueryTracker:
    """
    Lets callers discard results of superseded queries.

    Call ``issue()`` before starting a query and apply its result only while
    ``is_current(ticket)`` still holds.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest = 0

    def issue(self) -> int:
        self._latest = next(self._counter)
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest


def build_availability_facade(
    config: AppConfig,
    *,
    force_local: bool = False,
    clock: Optional[Callable[[], datetime]] = None,
) -> AvailabilityFacade:
    """
    Assemble the facade selected by ``config.backend``.

    ``remote`` uses the booking API with the local engine as fallback;
    ``local`` (or ``force_local``) uses the engine only.
    """
    local = LocalAvailabilityBackend(
        LocalCatalog(config),
        month_scan_days=config.availability.month_scan_days,
        clock=clock,
    )

    if force_local or config.backend == "local":
        return AvailabilityFacade(primary=local)

    authenticator = build_authenticator(config)
    client = BookingApiClient(
        base_url=config.api_base_url,
        authenticator=authenticator,
        timeout=config.request_timeout_seconds,
        http=authenticator.http,
    )
    return AvailabilityFacade(primary=RemoteAvailabilityBackend(client), fallback=local)


def build_authenticator(config: AppConfig) -> SessionAuthenticator:
    if not config.api_base_url:
        raise ValueError("api_base_url is not configured")
    return SessionAuthenticator(
        base_url=config.api_base_url,
        timeout=config.request_timeout_seconds,
        cache_file=config.session_cache_file,
    )
