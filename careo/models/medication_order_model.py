# careo/models/medication_order_model.py
"""
Medication Order Models - Pydantic models for prescribed medication courses.

MedicationOrderCreate enforces the order invariants at input time, the way the
clinician form does. MedicationOrder is the read model returned by the
repository: it is deliberately lenient about dose times so that a malformed
stored order still reaches the generation job, which skips and reports it
instead of failing the whole query. Rows that cannot be read even leniently
come back as MalformedOrder so they are reported per order.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import DEFAULT_DOSE_QUANTITY
from ..enums import MedicationFrequency, OrderStatus, ScheduleType
from ..utils.time_utils import ensure_utc, is_valid_dose_time

# Terminal statuses have no outgoing transitions
ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, frozenset] = {
    OrderStatus.ACTIVE: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Check whether an order may move from one lifecycle status to another."""
    return new in ORDER_STATUS_TRANSITIONS[current]


class MedicationOrderBase(BaseModel):
    """Base model for medication order data."""

    resident_id: str = Field(..., description="Resident the order belongs to")
    name: str = Field(default="", description="Medication display name")
    schedule_type: ScheduleType = Field(..., description="Scheduled or PRN")
    frequency: MedicationFrequency = Field(..., description="Clinical frequency")
    times: List[str] = Field(
        default_factory=list, description="Local dose times, 24-hour HH:MM"
    )
    time_quantities: Dict[str, int] = Field(
        default_factory=dict, description="Dose quantity per time (default 1)"
    )
    start_date: datetime = Field(..., description="First instant of the course")
    end_date: Optional[datetime] = Field(
        None, description="Last instant of the course, open-ended when unset"
    )
    status: OrderStatus = Field(default=OrderStatus.ACTIVE)
    organization_id: Optional[str] = None
    team_id: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_instant(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored instants are UTC; naive values are read as UTC."""
        return ensure_utc(v) if v is not None else v

    @property
    def is_prn(self) -> bool:
        """PRN doses are recorded reactively and never scheduled."""
        return (
            self.schedule_type == ScheduleType.PRN
            or self.frequency == MedicationFrequency.AS_NEEDED
        )

    @property
    def is_active(self) -> bool:
        return self.status == OrderStatus.ACTIVE

    def quantity_for(self, scheduled_time: str) -> int:
        """Dose quantity for one of the order's times."""
        return self.time_quantities.get(scheduled_time, DEFAULT_DOSE_QUANTITY)


class MedicationOrderCreate(MedicationOrderBase):
    """Model for creating a new medication order."""

    @field_validator("times")
    @classmethod
    def validate_times(cls, v: List[str]) -> List[str]:
        invalid = [t for t in v if not is_valid_dose_time(t)]
        if invalid:
            raise ValueError(
                f"Invalid dose time(s) {invalid}, expected 24-hour HH:MM"
            )
        return v

    @field_validator("time_quantities")
    @classmethod
    def validate_time_quantities(cls, v: Dict[str, int]) -> Dict[str, int]:
        if any(quantity < 1 for quantity in v.values()):
            raise ValueError("Dose quantities must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_schedule(self) -> "MedicationOrderCreate":
        if self.schedule_type == ScheduleType.SCHEDULED and not self.times:
            raise ValueError("At least one time is required for scheduled medications")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date cannot be earlier than start_date")
        unknown = set(self.time_quantities) - set(self.times)
        if unknown:
            raise ValueError(
                f"Quantities given for times not in the schedule: {sorted(unknown)}"
            )
        return self


class MedicationOrder(MedicationOrderBase):
    """Complete medication order model with all database fields."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderStatusUpdate(BaseModel):
    """Requested lifecycle status for an existing order."""

    status: OrderStatus

class MalformedOrder(BaseModel):
    """A stored order row that could not be read as a MedicationOrder."""

    id: str
    resident_id: Optional[str] = None
    reason: str


# What the order query yields per row
OrderCandidate = Union[MedicationOrder, MalformedOrder]
