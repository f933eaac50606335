# careo/models/intake_record_model.py
"""
Intake Record Models - one concrete, date-stamped dose due for administration.

Intake records are created only by the daily generation job and are never
deleted or regenerated; the (order_id, scheduled_date, scheduled_time) triple
is the idempotency key.
"""

from datetime import date, datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..constants import DEFAULT_DOSE_QUANTITY
from ..enums import AdministrationStatus, ShiftLabel
from ..utils.intake_key_generator import IntakeKeyGenerator


class IntakeRecordCreate(BaseModel):
    """Candidate intake record assembled by the generation job."""

    id: str = Field(..., description="Deterministic id derived from the key")
    order_id: str
    resident_id: str
    scheduled_date: date = Field(..., description="Facility-local dose date")
    scheduled_time: str = Field(..., description="Facility-local dose time HH:MM")
    scheduled_at: datetime = Field(..., description="Aware local dose timestamp")
    shift: ShiftLabel
    shift_date: date = Field(..., description="Date the dose's shift is reported under")
    quantity: int = Field(default=DEFAULT_DOSE_QUANTITY, ge=1)
    administration_status: AdministrationStatus = AdministrationStatus.PENDING
    organization_id: Optional[str] = None
    team_id: Optional[str] = None

    @property
    def idempotency_key(self) -> Tuple[str, str, str]:
        return IntakeKeyGenerator.natural_key(
            self.order_id, self.scheduled_date, self.scheduled_time
        )


class IntakeRecord(IntakeRecordCreate):
    """Complete intake record model with all database fields."""

    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    updated_at: Optional[datetime] = None


class ShiftSummary(BaseModel):
    """Dose counts for one shift, used in handover reporting."""

    shift_date: date
    shift: ShiftLabel
    shift_window: str = Field(..., description="Human readable window, e.g. 8AM - 8PM")
    total: int = 0
    pending: int = 0
    administered: int = 0
    missed: int = 0
    skipped: int = 0
