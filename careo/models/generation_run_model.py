# careo/models/generation_run_model.py
"""
Generation Run Models - configuration and results of daily intake generation.

A run never raises for per-order problems: they are collected as
GenerationFailure entries and the run finishes with COMPLETED_WITH_FAILURES.
Only a systemic repository failure ends a run as ABORTED.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import (
    DEFAULT_GENERATION_MAX_CONCURRENT_ORDERS,
    DEFAULT_GENERATION_MAX_INSERT_ATTEMPTS,
    DEFAULT_GENERATION_RETRY_DELAYS_SECONDS,
    MAX_BACKFILL_DAYS,
)
from ..enums import GenerationFailureKind, GenerationRunStatus, GenerationTrigger
from ..utils.time_utils import utc_now


class GenerationConfig(BaseModel):
    """Retry and concurrency limits for a generation run."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=DEFAULT_GENERATION_MAX_INSERT_ATTEMPTS, ge=1)
    retry_delays_seconds: List[float] = Field(
        default_factory=lambda: list(DEFAULT_GENERATION_RETRY_DELAYS_SECONDS)
    )
    max_concurrent_orders: int = Field(
        default=DEFAULT_GENERATION_MAX_CONCURRENT_ORDERS, ge=1
    )

    @field_validator("retry_delays_seconds")
    @classmethod
    def validate_delays(cls, v: List[float]) -> List[float]:
        if not v:
            raise ValueError("retry_delays_seconds cannot be empty")
        if any(delay < 0 for delay in v):
            raise ValueError("Retry delays must not be negative")
        return v

    @classmethod
    def from_settings(cls, settings) -> "GenerationConfig":
        return cls(
            max_attempts=settings.generation_max_insert_attempts,
            retry_delays_seconds=settings.generation_retry_delays_seconds,
            max_concurrent_orders=settings.generation_max_concurrent_orders,
        )


class GenerationFailure(BaseModel):
    """One order that could not be generated for the run's date."""

    order_id: str
    kind: GenerationFailureKind
    message: str
    attempts: int = 1


class GenerationRunResult(BaseModel):
    """Outcome of one generation run for one target date."""

    run_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    target_date: date
    trigger: GenerationTrigger = GenerationTrigger.SCHEDULED
    status: GenerationRunStatus = GenerationRunStatus.COMPLETED
    orders_considered: int = 0
    orders_processed: int = 0
    records_inserted: int = 0
    records_existing: int = 0
    failures: List[GenerationFailure] = Field(default_factory=list)
    abort_reason: Optional[str] = None
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def records_total(self) -> int:
        """Records that exist for the date's processed orders after the run."""
        return self.records_inserted + self.records_existing

    @property
    def duration_ms(self) -> Optional[int]:
        if self.completed_at is None:
            return None
        return int((self.completed_at - self.started_at).total_seconds() * 1000)


class GenerationRunRequest(BaseModel):
    """Manual generation request; target_date defaults to facility-local today."""

    target_date: Optional[date] = None


class BackfillRequest(BaseModel):
    """Generate every date from start_date to end_date inclusive."""

    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self) -> "BackfillRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be earlier than start_date")
        if (self.end_date - self.start_date).days + 1 > MAX_BACKFILL_DAYS:
            raise ValueError(f"Backfill is limited to {MAX_BACKFILL_DAYS} days")
        return self
