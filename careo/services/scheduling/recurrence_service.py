# careo/services/scheduling/recurrence_service.py

"""
Recurrence Expander.

Turns one medication order into the concrete doses due on one facility-local
calendar date. This is the only place that interprets schedule types and
frequencies, and it is deterministic: the same (order, date) always yields
the same doses, which is what makes repeated generation idempotent.

Business Rules:
- Only ACTIVE orders generate doses
- PRN orders never generate scheduled doses
- The validity window is compared by local calendar day and is inclusive of
  both the start and the end date; no end date means open-ended
- Daily frequencies (OD, BD, TD, QDS, QIS) are due every date in the window
- Weekly is due on the weekday of the local start date
- Monthly is due on the day-of-month of the local start date, clamped to the
  last day of shorter months (31st -> 30th in April, 28th/29th in February)
- One time (STAT) is due only on the local start date
- Duplicate dose times collapse to a single dose
- Scheduled orders without times, or with times that are not 24-hour HH:MM,
  are malformed and raise OrderValidationError
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import List

from ...constants import DEFAULT_FACILITY_TIMEZONE
from ...enums import MedicationFrequency
from ...exceptions import OrderValidationError
from ...models.medication_order_model import MedicationOrder
from ...utils.time_utils import (
    TimezoneLike,
    combine_local,
    get_zone,
    is_valid_dose_time,
    iter_dates,
    last_day_of_month,
    local_date_of,
    parse_time_string,
)


@dataclass(frozen=True)
class ScheduledDose:
    """One dose due at a local wall-clock time on a local date."""

    scheduled_date: date
    scheduled_time: str
    scheduled_at: datetime


class RecurrenceExpander:
    """Expands medication orders into scheduled doses for a facility timezone."""

    def __init__(self, timezone: TimezoneLike = DEFAULT_FACILITY_TIMEZONE):
        self.zone = get_zone(timezone)

    # ────────────────────────────────────────────────────────────────────
    # Window and cadence
    # ────────────────────────────────────────────────────────────────────

    def local_date(self, instant: datetime) -> date:
        """Calendar date of an instant in the facility timezone."""
        return local_date_of(instant, self.zone)

    def is_within_window(self, order: MedicationOrder, target_date: date) -> bool:
        if target_date < self.local_date(order.start_date):
            return False
        if order.end_date is not None and target_date > self.local_date(order.end_date):
            return False
        return True

    def matches_cadence(self, order: MedicationOrder, target_date: date) -> bool:
        """Whether the order's frequency makes target_date a dosing day."""
        anchor = self.local_date(order.start_date)

        if order.frequency == MedicationFrequency.WEEKLY:
            return target_date.weekday() == anchor.weekday()

        if order.frequency == MedicationFrequency.MONTHLY:
            month_length = last_day_of_month(target_date.year, target_date.month)
            return target_date.day == min(anchor.day, month_length)

        if order.frequency == MedicationFrequency.ONE_TIME:
            return target_date == anchor

        return True

    def is_eligible(self, order: MedicationOrder, target_date: date) -> bool:
        """Whether the order can produce doses on target_date at all."""
        return (
            order.is_active
            and not order.is_prn
            and self.is_within_window(order, target_date)
            and self.matches_cadence(order, target_date)
        )

    # ────────────────────────────────────────────────────────────────────
    # Validation
    # ────────────────────────────────────────────────────────────────────

    def validate(self, order: MedicationOrder) -> List[str]:
        """
        Check a scheduled order's dose times.

        Returns:
            Distinct dose times in ascending order

        Raises:
            OrderValidationError: If the order has no times or an invalid time
        """
        if not order.times:
            raise OrderValidationError(
                "Scheduled order has no dose times", order_id=order.id
            )
        invalid = [t for t in order.times if not is_valid_dose_time(t)]
        if invalid:
            raise OrderValidationError(
                f"Invalid dose time(s) {invalid}, expected 24-hour HH:MM",
                order_id=order.id,
            )
        # Zero padded HH:MM sorts chronologically
        return sorted(set(order.times))

    # ────────────────────────────────────────────────────────────────────
    # Expansion
    # ────────────────────────────────────────────────────────────────────

    def expand(self, order: MedicationOrder, target_date: date) -> List[ScheduledDose]:
        """
        Doses of one order due on one local date.

        Args:
            order: Medication order
            target_date: Facility-local calendar date

        Returns:
            Doses in ascending time order; empty when nothing is due

        Raises:
            OrderValidationError: If an order that is due on target_date is
                malformed; off-cadence days are not reported
        """
        if not order.is_active or order.is_prn:
            return []
        if not self.is_within_window(order, target_date):
            return []
        if not self.matches_cadence(order, target_date):
            return []

        times = self.validate(order)

        return [
            ScheduledDose(
                scheduled_date=target_date,
                scheduled_time=t,
                scheduled_at=combine_local(target_date, parse_time_string(t), self.zone),
            )
            for t in times
        ]

    def expand_range(
        self, order: MedicationOrder, start_date: date, end_date: date
    ) -> List[ScheduledDose]:
        """Doses due on each date from start_date to end_date inclusive."""
        doses: List[ScheduledDose] = []
        for target_date in iter_dates(start_date, end_date):
            doses.extend(self.expand(order, target_date))
        return doses
