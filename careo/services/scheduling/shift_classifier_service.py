# careo/services/scheduling/shift_classifier_service.py

"""
Shift Classifier Service.

Maps a facility-local timestamp to the staffing shift it falls in and to the
"shift date" the shift is reported under for handover.

Business Rules:
- Day shift covers local hours [day_start_hour, day_end_hour)
- Night shift covers [day_end_hour, day_start_hour) and spans midnight
- A night instant before day_start_hour belongs to the night shift that
  started on the previous calendar day, so one night is reported as a
  single shift dated the evening it began
- Aware timestamps are converted to the facility timezone first; naive
  timestamps are taken as already local
"""

from datetime import datetime, timedelta
from typing import Optional

from ...enums import ShiftLabel
from ...models.shift_model import ShiftAssignment, ShiftConfig
from ...utils.time_utils import utc_now


def _format_hour(hour: int) -> str:
    """Format an hour as 12-hour time ("8AM", "12PM")."""
    if hour == 0:
        return "12AM"
    if hour == 12:
        return "12PM"
    if hour < 12:
        return f"{hour}AM"
    return f"{hour - 12}PM"


class ShiftClassifier:
    """
    Pure shift attribution for one facility configuration.

    Instances hold no mutable state and are safe to share across tasks.
    """

    def __init__(self, config: Optional[ShiftConfig] = None):
        self.config = config or ShiftConfig()

    def _localize(self, timestamp: datetime) -> datetime:
        if timestamp.tzinfo is None:
            return timestamp
        return timestamp.astimezone(self.config.zone)

    def classify_label(self, timestamp: datetime) -> ShiftLabel:
        """Shift label for a timestamp."""
        hour = self._localize(timestamp).hour
        if self.config.day_start_hour <= hour < self.config.day_end_hour:
            return ShiftLabel.DAY
        return ShiftLabel.NIGHT

    def classify(self, timestamp: datetime) -> ShiftAssignment:
        """
        Classify a timestamp into (shift, shift_date).

        Args:
            timestamp: Facility-local timestamp (aware timestamps are converted)

        Returns:
            ShiftAssignment with the shift label and its reporting date
        """
        local = self._localize(timestamp)
        label = self.classify_label(local)
        shift_date = local.date()
        if label == ShiftLabel.NIGHT and local.hour < self.config.day_start_hour:
            shift_date = shift_date - timedelta(days=1)
        return ShiftAssignment(shift=label, shift_date=shift_date)

    def current_shift(self, now: Optional[datetime] = None) -> ShiftAssignment:
        """Shift in progress at the facility right now."""
        return self.classify((now or utc_now()).astimezone(self.config.zone))

    def describe_window(self, shift: ShiftLabel) -> str:
        """
        Human readable shift window.

        Example:
            describe_window(ShiftLabel.DAY)   -> "8AM - 8PM"
            describe_window(ShiftLabel.NIGHT) -> "8PM - 8AM"
        """
        start, end = self.config.day_start_hour, self.config.day_end_hour
        if shift == ShiftLabel.NIGHT:
            start, end = end, start
        return f"{_format_hour(start)} - {_format_hour(end)}"
