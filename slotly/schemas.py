"""
Wire shapes of the availability API.

Field names on the wire are camelCase; ``model_dump(by_alias=True)`` produces
the exact payloads and ``model_validate`` accepts them.
"""

import re
from typing import List

import pendulum
from pydantic import BaseModel, ConfigDict, Field, field_validator

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class MonthAvailabilityQuery(_WireModel):
    business_id: str = Field(alias="businessId")
    service_id: str = Field(alias="serviceId")
    year: int
    month: int = Field(ge=1, le=12)

    def to_params(self) -> dict:
        return self.model_dump(by_alias=True)


class MonthAvailability(_WireModel):
    """Each entry is a ``YYYY-MM-DD`` date with at least one slot."""
    available_dates: List[str] = Field(alias="availableDates")


class DayAvailabilityQuery(_WireModel):
    business_id: str = Field(alias="businessId")
    service_id: str = Field(alias="serviceId")
    date: str

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        if not _DATE_PATTERN.match(value):
            raise ValueError(f"date must be formatted YYYY-MM-DD, got {value!r}")
        try:
            pendulum.from_format(value, "YYYY-MM-DD")
        except ValueError as exc:
            raise ValueError(f"date is not a calendar date: {value!r}") from exc
        return value

    def to_params(self) -> dict:
        return self.model_dump(by_alias=True)


class TimeSlotPayload(_WireModel):
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_hhmm(cls, value: str) -> str:
        if not _HHMM_PATTERN.match(value):
            raise ValueError(f"time must be formatted HH:mm, got {value!r}")
        return value


class DayAvailability(_WireModel):
    date: str
    slots: List[TimeSlotPayload] = Field(default_factory=list)


class SessionPayload(_WireModel):
    token: str
