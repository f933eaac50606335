# careo/config.py
from pathlib import Path
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_DAY_SHIFT_END_HOUR,
    DEFAULT_DAY_SHIFT_START_HOUR,
    DEFAULT_FACILITY_TIMEZONE,
    DEFAULT_GENERATION_CRON_HOUR_UTC,
    DEFAULT_GENERATION_CRON_MINUTE_UTC,
    DEFAULT_GENERATION_MAX_CONCURRENT_ORDERS,
    DEFAULT_GENERATION_MAX_INSERT_ATTEMPTS,
    DEFAULT_GENERATION_RETRY_DELAYS_SECONDS,
)
from .enums import LogLevel


class Settings(BaseSettings):
    environment: str = "development"
    # Database
    database_url: str = Field(..., description="PostgreSQL connection string")
    db_pool_size: int = Field(
        default=10,
        ge=2,
        le=100,
        description="Database connection pool size",
    )
    db_max_overflow: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Maximum number of clients waiting for a connection",
    )
    db_pool_timeout: int = Field(
        default=30,
        ge=5,
        le=300,
        description="Database connection timeout in seconds",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host to bind to")
    api_port: int = Field(
        default=8000, ge=1, le=65535, description="API port to bind to"
    )

    # Can be set via CORS_ORIGINS env var as comma-separated string
    cors_origins: Union[str, List[str]] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins. Can be comma-separated string.",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert cors_origins to a list of strings"""
        if isinstance(self.cors_origins, str):
            return [origin.strip() for origin in self.cors_origins.split(",")]
        return self.cors_origins

    # Base data directory - defaults to relative path, overrideable
    data_directory: str = "./data"

    @property
    def data_path(self) -> Path:
        """Get data directory as Path object"""
        return Path(self.data_directory)

    @property
    def logs_directory(self) -> str:
        """Logs subdirectory path"""
        return str(self.data_path / "logs")

    def ensure_directories(self):
        """Create all required directories if they don't exist"""
        Path(self.logs_directory).mkdir(parents=True, exist_ok=True)

    # Facility and shifts
    facility_timezone: str = Field(
        default=DEFAULT_FACILITY_TIMEZONE,
        description="IANA timezone of the care facility (e.g. Europe/London)",
    )
    day_shift_start_hour: int = Field(
        default=DEFAULT_DAY_SHIFT_START_HOUR,
        ge=0,
        le=23,
        description="Local hour the day shift starts (inclusive)",
    )
    day_shift_end_hour: int = Field(
        default=DEFAULT_DAY_SHIFT_END_HOUR,
        ge=1,
        le=23,
        description="Local hour the day shift ends and the night shift starts",
    )

    # Intake generation job
    generation_cron_hour_utc: int = Field(
        default=DEFAULT_GENERATION_CRON_HOUR_UTC,
        ge=0,
        le=23,
        description="UTC hour the daily intake generation fires",
    )
    generation_cron_minute_utc: int = Field(
        default=DEFAULT_GENERATION_CRON_MINUTE_UTC,
        ge=0,
        le=59,
        description="UTC minute the daily intake generation fires",
    )
    generation_run_on_startup: bool = Field(
        default=True,
        description="Run generation for today when the worker starts",
    )
    generation_max_insert_attempts: int = Field(
        default=DEFAULT_GENERATION_MAX_INSERT_ATTEMPTS,
        ge=1,
        le=10,
        description="Attempts per repository call before giving up on an order",
    )
    generation_retry_delays_seconds: List[float] = Field(
        default_factory=lambda: list(DEFAULT_GENERATION_RETRY_DELAYS_SECONDS),
        description="Delay before each retry attempt (last value is reused)",
    )
    generation_max_concurrent_orders: int = Field(
        default=DEFAULT_GENERATION_MAX_CONCURRENT_ORDERS,
        ge=1,
        le=100,
        description="Orders processed concurrently within one run",
    )

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path (optional)"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v) -> LogLevel:
        """Validate log level is one of the allowed values"""
        if isinstance(v, LogLevel):
            return v
        allowed_levels = LogLevel.__members__.keys()
        v_upper = str(v).upper()
        if v_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(allowed_levels)}"
            )
        return LogLevel[v_upper]

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values"""
        allowed_envs = ["development", "staging", "production", "test"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {', '.join(allowed_envs)}"
            )
        return v_lower

    @field_validator("facility_timezone")
    @classmethod
    def validate_facility_timezone(cls, v: str) -> str:
        """Validate the facility timezone is a known IANA name"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown facility timezone '{v}'") from e
        return v

    @field_validator("generation_retry_delays_seconds")
    @classmethod
    def validate_retry_delays(cls, v: List[float]) -> List[float]:
        if not v:
            raise ValueError("generation_retry_delays_seconds cannot be empty")
        if any(delay < 0 for delay in v):
            raise ValueError("Retry delays must not be negative")
        return v

    @model_validator(mode="after")
    def validate_shift_boundaries(self) -> "Settings":
        if self.day_shift_start_hour >= self.day_shift_end_hour:
            raise ValueError(
                "day_shift_start_hour must be earlier than day_shift_end_hour"
            )
        return self

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


# Global settings instance
settings = Settings()  # type: ignore[call-arg]

# Ensure directories exist on import
settings.ensure_directories()
