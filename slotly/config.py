"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .domain.models import ReservationStatus, WeekdayHours, parse_hhmm, validate_timezone


class AvailabilityDefaults(BaseModel):
    """Default settings for availability scans."""
    horizon_days: int = 30
    month_scan_days: int = 90
    buffer_minutes: int = 0

    @field_validator("horizon_days", "month_scan_days")
    @classmethod
    def validate_days(cls, value: int) -> int:
        """Ensure scan horizons are positive."""
        if value <= 0:
            raise ValueError("scan horizons must be greater than zero")
        return value

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError("buffer_minutes must not be negative")
        return value


class WeekdayHoursConfig(BaseModel):
    """One open interval; weekday 1=Monday .. 7=Sunday."""
    weekday: int
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        parse_hhmm(value)
        return value

    @model_validator(mode="after")
    def validate_interval(self) -> "WeekdayHoursConfig":
        """Build the domain value once so bad weekdays or reversed hours fail on load."""
        self.to_domain()
        return self

    def to_domain(self) -> WeekdayHours:
        return WeekdayHours(weekday=self.weekday, start=self.start, end=self.end)


class ServiceConfig(BaseModel):
    """A bookable service offered by a business."""
    id: str
    name: str = ""
    duration_minutes: int
    buffer_minutes: Optional[int] = None  # Falls back to availability.buffer_minutes

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value


class BusinessConfig(BaseModel):
    """A tenant with its weekly hours and services."""
    id: str
    slug: str = ""
    name: str = ""
    timezone: Optional[str] = None  # Falls back to the global timezone
    working_hours: List[WeekdayHoursConfig] = Field(default_factory=list)
    services: List[ServiceConfig] = Field(default_factory=list)

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceConfig]) -> List[ServiceConfig]:
        """Ensure service ids are unique within the business."""
        seen: set[str] = set()
        for service in value:
            if service.id in seen:
                raise ValueError(f"Duplicate service id detected: {service.id}")
            seen.add(service.id)
        return value

    def find_service(self, service_id: str) -> ServiceConfig | None:
        for service in self.services:
            if service.id == service_id:
                return service
        return None

    def display_name(self) -> str:
        return self.name or self.slug or self.id


class ReservationConfig(BaseModel):
    """An existing booking as stored by the booking flow (camelCase on disk)."""
    model_config = ConfigDict(populate_by_name=True)

    business_id: str = Field(alias="businessId")
    service_id: Optional[str] = Field(default=None, alias="serviceId")
    start_at_iso: str = Field(alias="startAtIso")
    status: ReservationStatus = ReservationStatus.CONFIRMED
    duration_minutes: Optional[int] = Field(default=None, alias="durationMin")


class AppConfig(BaseModel):
    """Application configuration."""
    backend: Literal["remote", "local"] = "local"
    api_base_url: Optional[str] = None
    request_timeout_seconds: float = 15.0
    timezone: str = "Europe/Berlin"
    session_cache_file: Optional[Path] = None
    availability: AvailabilityDefaults = Field(default_factory=AvailabilityDefaults)
    businesses: List[BusinessConfig] = Field(default_factory=list)
    reservations: List[ReservationConfig] = Field(default_factory=list)
    reservations_file: Optional[Path] = None

    @field_validator("timezone")
    @classmethod
    def validate_default_timezone(cls, value: str) -> str:
        return validate_timezone(value)

    @field_validator("businesses")
    @classmethod
    def validate_businesses(cls, value: List[BusinessConfig]) -> List[BusinessConfig]:
        """Ensure business ids and slugs are unique and timezones are known."""
        seen_ids: set[str] = set()
        seen_slugs: set[str] = set()
        for business in value:
            if business.id in seen_ids:
                raise ValueError(f"Duplicate business id detected: {business.id}")
            if business.slug and business.slug in seen_slugs:
                raise ValueError(f"Duplicate business slug detected: {business.slug}")
            if business.timezone:
                validate_timezone(business.timezone)
            seen_ids.add(business.id)
            if business.slug:
                seen_slugs.add(business.slug)
        return value

    @model_validator(mode="after")
    def validate_backend(self) -> "AppConfig":
        """The remote backend needs somewhere to talk to."""
        if self.backend == "remote" and not self.api_base_url:
            raise ValueError("api_base_url is required when backend is 'remote'")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``reservations_file`` is resolved against the config file's directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.reservations_file and not config.reservations_file.is_absolute():
            config.reservations_file = config_path.parent / config.reservations_file
        return config

    def find_business(self, business_id: str) -> BusinessConfig | None:
        """Find a business by id, or by slug as a convenience."""
        for business in self.businesses:
            if business.id == business_id:
                return business
        for business in self.businesses:
            if business.slug and business.slug == business_id:
                return business
        return None

    def timezone_for(self, business: BusinessConfig) -> str:
        return business.timezone or self.timezone


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
