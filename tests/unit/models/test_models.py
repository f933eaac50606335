#!/usr/bin/env python3
"""
Unit tests for order, intake record and generation run models.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from careo.enums import MedicationFrequency, OrderStatus, ScheduleType
from careo.models.generation_run_model import (
    BackfillRequest,
    GenerationConfig,
    GenerationRunResult,
)
from careo.models.medication_order_model import MedicationOrderCreate, can_transition


def _order_data(**overrides):
    data = {
        "resident_id": "resident-1",
        "schedule_type": ScheduleType.SCHEDULED,
        "frequency": MedicationFrequency.TWICE_DAILY,
        "times": ["08:00", "20:00"],
        "start_date": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return data


@pytest.mark.unit
class TestMedicationOrderCreate:
    def test_valid_order(self):
        order = MedicationOrderCreate(**_order_data())

        assert order.status == OrderStatus.ACTIVE
        assert order.end_date is None

    def test_naive_dates_read_as_utc(self):
        order = MedicationOrderCreate(**_order_data(start_date=datetime(2024, 1, 1, 9)))

        assert order.start_date.tzinfo == timezone.utc

    def test_scheduled_requires_times(self):
        with pytest.raises(ValidationError, match="At least one time"):
            MedicationOrderCreate(**_order_data(times=[]))

    def test_prn_without_times(self):
        order = MedicationOrderCreate(
            **_order_data(
                schedule_type=ScheduleType.PRN,
                frequency=MedicationFrequency.AS_NEEDED,
                times=[],
            )
        )

        assert order.is_prn

    def test_invalid_time(self):
        with pytest.raises(ValidationError, match="HH:MM"):
            MedicationOrderCreate(**_order_data(times=["8pm"]))

    def test_end_before_start(self):
        with pytest.raises(ValidationError, match="end_date"):
            MedicationOrderCreate(
                **_order_data(end_date=datetime(2023, 12, 31, tzinfo=timezone.utc))
            )

    def test_quantity_for_unknown_time(self):
        with pytest.raises(ValidationError, match="not in the schedule"):
            MedicationOrderCreate(**_order_data(time_quantities={"12:00": 2}))

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            MedicationOrderCreate(**_order_data(time_quantities={"08:00": 0}))

    def test_quantity_for(self):
        order = MedicationOrderCreate(**_order_data(time_quantities={"20:00": 2}))

        assert order.quantity_for("20:00") == 2
        assert order.quantity_for("08:00") == 1


@pytest.mark.unit
class TestOrderStatusTransitions:
    @pytest.mark.parametrize(
        "current, new, allowed",
        [
            (OrderStatus.ACTIVE, OrderStatus.COMPLETED, True),
            (OrderStatus.ACTIVE, OrderStatus.CANCELLED, True),
            (OrderStatus.ACTIVE, OrderStatus.ACTIVE, False),
            (OrderStatus.COMPLETED, OrderStatus.ACTIVE, False),
            (OrderStatus.CANCELLED, OrderStatus.ACTIVE, False),
            (OrderStatus.CANCELLED, OrderStatus.COMPLETED, False),
        ],
    )
    def test_can_transition(self, current, new, allowed):
        assert can_transition(current, new) is allowed


@pytest.mark.unit
class TestGenerationModels:
    def test_backfill_request_limits(self):
        BackfillRequest(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))

        with pytest.raises(ValidationError, match="limited"):
            BackfillRequest(start_date=date(2024, 1, 1), end_date=date(2024, 2, 1))

        with pytest.raises(ValidationError, match="earlier"):
            BackfillRequest(start_date=date(2024, 1, 2), end_date=date(2024, 1, 1))

    def test_generation_config_validation(self):
        with pytest.raises(ValidationError):
            GenerationConfig(retry_delays_seconds=[])
        with pytest.raises(ValidationError):
            GenerationConfig(max_attempts=0)

    def test_run_result_duration(self):
        started = datetime(2024, 1, 15, 11, 0, tzinfo=timezone.utc)
        result = GenerationRunResult(target_date=date(2024, 1, 15), started_at=started)

        assert result.duration_ms is None
        result.completed_at = started + timedelta(milliseconds=1500)
        assert result.duration_ms == 1500
        assert result.records_total == 0
        assert not result.has_failures

    def test_run_ids_unique(self):
        first = GenerationRunResult(target_date=date(2024, 1, 15))
        second = GenerationRunResult(target_date=date(2024, 1, 15))

        assert first.run_id != second.run_id
