"""
Local business catalog backing the on-device availability engine.
"""

import json
import logging
from pathlib import Path
from typing import List, Tuple

import pendulum
from pendulum import DateTime
from pydantic import ValidationError

from ..config import AppConfig, BusinessConfig, ReservationConfig, ServiceConfig
from ..domain.exceptions import UnknownBusinessError, UnknownServiceError
from ..domain.models import AvailabilityParams, ExistingReservation

logger = logging.getLogger(__name__)


class LocalCatalog:
    """
    Resolves business/service ids into engine input.

    Businesses come from the application config; reservations from the config's
    inline ``reservations`` list plus an optional JSON ``reservations_file``.
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self.reservation_records = list(config.reservations) + self._load_reservation_file(
            config.reservations_file
        )

    def _load_reservation_file(self, path: Path | None) -> List[ReservationConfig]:
        """Load reservation records from a JSON file, skipping invalid entries."""
        if path is None:
            return []

        if not path.exists():
            logger.warning("Reservations file %s does not exist; assuming no bookings", path)
            return []

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw_records = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read reservations file %s; assuming no bookings: %s", path, exc)
            return []

        if not isinstance(raw_records, list):
            logger.warning("Reservations file %s must hold a JSON list; assuming no bookings", path)
            return []

        records: List[ReservationConfig] = []
        for raw in raw_records:
            try:
                records.append(ReservationConfig.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping invalid reservation record %r: %s", raw, exc)
        return records

    def lookup(self, business_id: str, service_id: str) -> Tuple[BusinessConfig, ServiceConfig]:
        """
        Find a business and one of its services.

        Raises:
            UnknownBusinessError: If the business is not configured
            UnknownServiceError: If the business does not offer the service
        """
        business = self.config.find_business(business_id)
        if business is None:
            raise UnknownBusinessError(f"Unknown business: {business_id}")

        service = business.find_service(service_id)
        if service is None:
            raise UnknownServiceError(f"Unknown service {service_id} for business {business.id}")

        return business, service

    def reservations_for(self, business: BusinessConfig) -> List[ExistingReservation]:
        """Existing reservations of ``business`` as domain objects."""
        timezone = self.config.timezone_for(business)
        reservations: List[ExistingReservation] = []

        for record in self.reservation_records:
            if record.business_id != business.id:
                continue
            try:
                start_at = pendulum.parse(record.start_at_iso, tz=timezone)
                if not isinstance(start_at, DateTime):
                    raise ValueError("not a date-time")
                reservations.append(
                    ExistingReservation(
                        business_id=record.business_id,
                        start_at=start_at.in_timezone(timezone),
                        status=record.status,
                        duration_minutes=record.duration_minutes,
                    )
                )
            except ValueError as exc:
                logger.warning("Skipping reservation at %r: %s", record.start_at_iso, exc)

        return reservations

    def params_for(self, business_id: str, service_id: str) -> AvailabilityParams:
        """Build the engine input for one business/service pair."""
        business, service = self.lookup(business_id, service_id)
        buffer_minutes = (
            service.buffer_minutes
            if service.buffer_minutes is not None
            else self.config.availability.buffer_minutes
        )

        return AvailabilityParams(
            working_hours=[hours.to_domain() for hours in business.working_hours],
            service_duration_minutes=service.duration_minutes,
            business_id=business.id,
            existing_reservations=self.reservations_for(business),
            buffer_minutes=buffer_minutes,
            timezone=self.config.timezone_for(business),
        )
