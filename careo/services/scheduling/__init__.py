"""
Scheduling services: dose recurrence and shift attribution.
"""

from .recurrence_service import RecurrenceExpander, ScheduledDose
from .shift_classifier_service import ShiftClassifier

__all__ = ["RecurrenceExpander", "ScheduledDose", "ShiftClassifier"]
