"""
HTTP client for the booking API availability endpoints.
"""

import asyncio
import logging
from typing import Any, Dict

import requests
from pydantic import ValidationError

from ..domain.exceptions import BookingAPIError
from ..schemas import (
    DayAvailability,
    DayAvailabilityQuery,
    MonthAvailability,
    MonthAvailabilityQuery,
)
from .session_authenticator import SessionAuthenticator

logger = logging.getLogger(__name__)


class BookingApiClient:
    """
    Client for the public booking API.

    Every request carries the session bearer token. A 401 answer triggers one
    re-authentication and exactly one retry of the same request.
    """

    MONTH_AVAILABILITY_PATH = "/availability/month"
    DAY_AVAILABILITY_PATH = "/availability"

    def __init__(
        self,
        base_url: str,
        authenticator: SessionAuthenticator,
        timeout: float = 15.0,
        http: requests.Session | None = None
    ):
        """
        Initialize the booking API client.

        Args:
            base_url: Booking API base URL
            authenticator: Source of session tokens
            timeout: Request timeout in seconds
            http: Optional requests session
        """
        self.base_url = base_url.rstrip("/")
        self.authenticator = authenticator
        self.timeout = timeout
        self.http = http or requests.Session()

    def get_month_availability(self, query: MonthAvailabilityQuery) -> MonthAvailability:
        """
        Days of a month with at least one open slot.

        Raises:
            BookingAPIError: On transport failure, non-2xx status or malformed body
        """
        data = self._get(self.MONTH_AVAILABILITY_PATH, query.to_params())
        return self._parse(MonthAvailability, data)

    def get_day_availability(self, query: DayAvailabilityQuery) -> DayAvailability:
        """
        Concrete slots of one date.

        Raises:
            BookingAPIError: On transport failure, non-2xx status or malformed body
        """
        data = self._get(self.DAY_AVAILABILITY_PATH, query.to_params())
        return self._parse(DayAvailability, data)

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        token = self.authenticator.get_session_token()
        response = self._send(path, params, token)

        if response.status_code == 401:
            logger.info("Booking session rejected, re-authenticating once")
            token = self.authenticator.get_session_token(force_refresh=True)
            response = self._send(path, params, token)

        if not 200 <= response.status_code < 300:
            raise BookingAPIError(
                f"Booking API {path} answered with status {response.status_code}",
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise BookingAPIError(
                f"Booking API {path} returned invalid JSON: {exc}",
                status=response.status_code,
            ) from exc

    def _send(self, path: str, params: Dict[str, Any], token: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

        try:
            return self.http.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise BookingAPIError(f"Failed to reach booking API at {url}: {exc}") from exc

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise BookingAPIError(f"Unexpected booking API response: {exc}") from exc


class RemoteAvailabilityBackend:
    """
    Availability served by the booking API.

    The blocking HTTP calls run in a worker thread so callers can await them.
    """

    def __init__(self, client: BookingApiClient):
        self._client = client

    async def get_month_availability(self, query: MonthAvailabilityQuery) -> MonthAvailability:
        return await asyncio.to_thread(self._client.get_month_availability, query)

    async def get_day_availability(self, query: DayAvailabilityQuery) -> DayAvailability:
        return await asyncio.to_thread(self._client.get_day_availability, query)
