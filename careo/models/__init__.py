"""
Pydantic models for medication orders, intake records, shifts and runs.
"""

from .generation_run_model import (
    BackfillRequest,
    GenerationConfig,
    GenerationFailure,
    GenerationRunRequest,
    GenerationRunResult,
)
from .intake_record_model import IntakeRecord, IntakeRecordCreate, ShiftSummary
from .medication_order_model import (
    MalformedOrder,
    MedicationOrder,
    MedicationOrderCreate,
    can_transition,
)
from .shift_model import ShiftAssignment, ShiftConfig

__all__ = [
    "BackfillRequest",
    "GenerationConfig",
    "GenerationFailure",
    "GenerationRunRequest",
    "GenerationRunResult",
    "IntakeRecord",
    "IntakeRecordCreate",
    "ShiftSummary",
    "MalformedOrder",
    "MedicationOrder",
    "MedicationOrderCreate",
    "can_transition",
    "ShiftAssignment",
    "ShiftConfig",
]
