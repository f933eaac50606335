# careo/models/shift_model.py
"""
Shift Models - facility shift configuration and shift attribution values.
"""

from dataclasses import dataclass
from datetime import date
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import (
    DEFAULT_DAY_SHIFT_END_HOUR,
    DEFAULT_DAY_SHIFT_START_HOUR,
    DEFAULT_FACILITY_TIMEZONE,
)
from ..enums import ShiftLabel
from ..utils.time_utils import validate_timezone


class ShiftConfig(BaseModel):
    """
    Facility shift boundaries.

    Day shift covers local hours [day_start_hour, day_end_hour); the night
    shift covers the rest of the day and spans midnight.
    """

    model_config = ConfigDict(frozen=True)

    timezone: str = Field(
        default=DEFAULT_FACILITY_TIMEZONE, description="Facility IANA timezone"
    )
    day_start_hour: int = Field(default=DEFAULT_DAY_SHIFT_START_HOUR, ge=0, le=23)
    day_end_hour: int = Field(default=DEFAULT_DAY_SHIFT_END_HOUR, ge=1, le=23)

    @field_validator("timezone")
    @classmethod
    def validate_timezone_name(cls, v: str) -> str:
        if not validate_timezone(v):
            raise ValueError(f"Unknown timezone '{v}'")
        return v

    @model_validator(mode="after")
    def validate_boundaries(self) -> "ShiftConfig":
        if self.day_start_hour >= self.day_end_hour:
            raise ValueError("day_start_hour must be earlier than day_end_hour")
        return self

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_settings(cls, settings) -> "ShiftConfig":
        """Build the shift configuration from application settings."""
        return cls(
            timezone=settings.facility_timezone,
            day_start_hour=settings.day_shift_start_hour,
            day_end_hour=settings.day_shift_end_hour,
        )


@dataclass(frozen=True)
class ShiftAssignment:
    """Shift a timestamp belongs to and the date that shift is reported under."""

    shift: ShiftLabel
    shift_date: date
