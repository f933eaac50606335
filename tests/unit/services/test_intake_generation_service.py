#!/usr/bin/env python3
"""
Unit tests for IntakeGenerationService.

Runs the daily generation job against an in-memory repository to check
idempotence, completeness, shift attribution, partial-failure handling,
retries and aborts.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from careo.enums import (
    AdministrationStatus,
    GenerationFailureKind,
    GenerationRunStatus,
    GenerationTrigger,
    MedicationFrequency,
    ScheduleType,
    ShiftLabel,
)
from careo.exceptions import IntakeGenerationError
from careo.models.intake_record_model import IntakeRecord
from careo.models.medication_order_model import MalformedOrder
from careo.services.intake_generation_service import IntakeGenerationService
from careo.utils.intake_key_generator import IntakeKeyGenerator
from careo.utils.retry_manager import RetryManager

TARGET = date(2024, 1, 15)


@pytest.fixture
def service(repository, shift_config, generation_config, run_log, instant_retry_manager):
    return IntakeGenerationService(
        repository=repository,
        shift_config=shift_config,
        config=generation_config,
        run_log=run_log,
        retry_manager=instant_retry_manager,
    )


@pytest.mark.unit
@pytest.mark.generation
class TestIntakeGenerationRun:
    """Test suite for a single generation run."""

    @pytest.mark.asyncio
    async def test_three_dose_scenario(self, service, repository, make_order):
        order = make_order(
            frequency=MedicationFrequency.THREE_TIMES_DAILY,
            times=["08:00", "14:00", "22:00"],
        )
        repository.orders = [order]

        result = await service.run(TARGET)

        records = repository.records_for(TARGET)
        assert result.status == GenerationRunStatus.COMPLETED
        assert result.records_inserted == 3
        assert [(r.scheduled_time, r.shift, r.shift_date) for r in records] == [
            ("08:00", ShiftLabel.DAY, TARGET),
            ("14:00", ShiftLabel.DAY, TARGET),
            ("22:00", ShiftLabel.NIGHT, TARGET),
        ]
        assert all(r.administration_status == AdministrationStatus.PENDING for r in records)
        assert all(r.resident_id == order.resident_id for r in records)

    @pytest.mark.asyncio
    async def test_early_morning_dose_attributed_to_previous_night(
        self, service, repository, make_order
    ):
        repository.orders = [make_order(times=["07:59", "08:00"])]

        await service.run(TARGET)

        early, day = repository.records_for(TARGET)
        assert early.shift == ShiftLabel.NIGHT
        assert early.shift_date == date(2024, 1, 14)
        assert early.scheduled_date == TARGET
        assert day.shift == ShiftLabel.DAY
        assert day.shift_date == TARGET

    @pytest.mark.asyncio
    async def test_running_twice_is_idempotent(self, service, repository, make_order):
        repository.orders = [
            make_order(times=["08:00", "20:00"]),
            make_order(resident_id="resident-2", times=["09:00"]),
        ]

        first = await service.run(TARGET)
        snapshot = dict(repository.records)
        second = await service.run(TARGET)

        assert first.records_inserted == 3
        assert second.records_inserted == 0
        assert second.records_existing == 3
        assert repository.records == snapshot

    @pytest.mark.asyncio
    async def test_concurrent_runs_converge(self, service, repository, make_order):
        repository.orders = [make_order(times=["08:00", "12:00", "18:00"]) for _ in range(5)]

        results = await asyncio.gather(service.run(TARGET), service.run(TARGET))

        assert len(repository.records) == 15
        assert sum(r.records_inserted for r in results) == 15

    @pytest.mark.asyncio
    async def test_newly_activated_order_fills_only_missing_records(
        self, service, repository, make_order
    ):
        existing = make_order(times=["08:00"])
        repository.orders = [existing]
        await service.run(TARGET)

        repository.orders.append(make_order(times=["10:00", "16:00"]))
        result = await service.run(TARGET)

        assert result.records_inserted == 2
        assert result.records_existing == 1
        assert len(repository.records_for(TARGET)) == 3

    @pytest.mark.asyncio
    async def test_times_added_mid_cycle_keep_existing_records(
        self, service, repository, make_order
    ):
        order = make_order(times=["08:00"])
        repository.orders = [order]
        await service.run(TARGET)

        repository.orders = [order.model_copy(update={"times": ["08:00", "13:00"]})]
        result = await service.run(TARGET)

        assert result.records_inserted == 1
        assert [r.scheduled_time for r in repository.records_for(TARGET)] == ["08:00", "13:00"]

    @pytest.mark.asyncio
    async def test_prn_orders_never_generate(self, service, repository, make_order):
        repository.orders = [
            make_order(schedule_type=ScheduleType.PRN, frequency=MedicationFrequency.AS_NEEDED),
            make_order(frequency=MedicationFrequency.AS_NEEDED, times=["08:00"]),
        ]

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.COMPLETED
        assert repository.records == {}
        assert result.orders_processed == 2

    @pytest.mark.asyncio
    async def test_record_ids_are_deterministic(self, service, repository, make_order):
        order = make_order(times=["08:00"])
        repository.orders = [order]

        await service.run(TARGET)

        (record,) = repository.records_for(TARGET)
        assert record.id == IntakeKeyGenerator.record_id(order.id, TARGET, "08:00")

    @pytest.mark.asyncio
    async def test_dose_quantities_copied_to_records(self, service, repository, make_order):
        repository.orders = [
            make_order(
                times=["08:00", "20:00"],
                time_quantities={"20:00": 2},
                organization_id="org-1",
                team_id="team-a",
            )
        ]

        await service.run(TARGET)

        morning, evening = repository.records_for(TARGET)
        assert morning.quantity == 1
        assert evening.quantity == 2
        assert evening.organization_id == "org-1"
        assert evening.team_id == "team-a"


@pytest.mark.unit
@pytest.mark.generation
class TestIntakeGenerationFailures:
    """Test suite for partial failures, retries and aborts."""

    @pytest.mark.asyncio
    async def test_malformed_order_skipped_and_reported(
        self, service, repository, make_order
    ):
        bad = make_order(times=[])
        good = make_order(times=["08:00"])
        repository.orders = [bad, good]

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.COMPLETED_WITH_FAILURES
        assert len(result.failures) == 1
        assert result.failures[0].order_id == bad.id
        assert result.failures[0].kind == GenerationFailureKind.VALIDATION
        assert result.records_inserted == 1

    @pytest.mark.asyncio
    async def test_invalid_stored_quantity_reported_as_validation(
        self, service, repository, make_order
    ):
        repository.orders = [make_order(times=["08:00"], time_quantities={"08:00": 0})]

        result = await service.run(TARGET)

        assert result.failures[0].kind == GenerationFailureKind.VALIDATION
        assert repository.records == {}

    @pytest.mark.asyncio
    async def test_unreadable_stored_order_reported_per_order(
        self, service, repository, make_order
    ):
        good = make_order(times=["08:00", "20:00"])
        unreadable = MalformedOrder(
            id="order-broken", resident_id="resident-2", reason="times.1: Input should be a valid string"
        )
        repository.orders = [unreadable, good]

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.COMPLETED_WITH_FAILURES
        assert result.orders_considered == 2
        assert result.orders_processed == 2
        (failure,) = result.failures
        assert failure.order_id == "order-broken"
        assert failure.kind == GenerationFailureKind.VALIDATION
        assert "valid string" in failure.message
        assert [r.order_id for r in repository.records_for(TARGET)] == [good.id, good.id]

    @pytest.mark.asyncio
    async def test_unexpected_error_isolated_to_its_order(
        self, service, repository, run_log, make_order
    ):
        broken = make_order(times=["08:00"])
        healthy = make_order(resident_id="resident-2", times=["09:00"])
        repository.orders = [broken, healthy]
        repository.broken_orders[broken.id] = RuntimeError("adapter returned garbage")

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.COMPLETED_WITH_FAILURES
        (failure,) = result.failures
        assert failure.order_id == broken.id
        assert failure.kind == GenerationFailureKind.UNEXPECTED
        assert "garbage" in failure.message
        assert [r.order_id for r in repository.records_for(TARGET)] == [healthy.id]
        assert run_log.runs == [result]

    @pytest.mark.asyncio
    async def test_transient_insert_error_retried(self, service, repository, make_order):
        order = make_order(times=["08:00"])
        repository.orders = [order]
        repository.insert_failures[IntakeKeyGenerator.natural_key(order.id, TARGET, "08:00")] = 2

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.COMPLETED
        assert result.records_inserted == 1
        assert repository.insert_calls == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_reported_as_transient_failure(
        self, service, repository, make_order
    ):
        flaky = make_order(times=["08:00"])
        healthy = make_order(resident_id="resident-2", times=["09:00"])
        repository.orders = [flaky, healthy]
        repository.insert_failures[IntakeKeyGenerator.natural_key(flaky.id, TARGET, "08:00")] = 10

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.COMPLETED_WITH_FAILURES
        (failure,) = result.failures
        assert failure.order_id == flaky.id
        assert failure.kind == GenerationFailureKind.TRANSIENT
        assert failure.attempts == 3
        assert [r.order_id for r in repository.records_for(TARGET)] == [healthy.id]

    @pytest.mark.asyncio
    async def test_unavailable_repository_aborts_run(self, service, repository, make_order):
        repository.orders = [make_order() for _ in range(3)]
        repository.unavailable = True

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.ABORTED
        assert result.abort_reason
        assert repository.records == {}
        # Unavailable inserts are not retried
        assert repository.insert_calls <= len(repository.orders)

    @pytest.mark.asyncio
    async def test_order_query_retried_then_succeeds(self, service, repository, make_order):
        repository.orders = [make_order()]
        repository.query_failures = 2

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.COMPLETED
        assert result.records_inserted == 1

    @pytest.mark.asyncio
    async def test_order_query_failure_aborts_run(self, service, repository, make_order):
        repository.orders = [make_order()]
        repository.query_failures = 5

        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.ABORTED
        assert result.orders_considered == 0
        assert repository.insert_calls == 0

    @pytest.mark.asyncio
    async def test_aborted_run_recovers_on_rerun(self, service, repository, make_order):
        repository.orders = [make_order(times=["08:00", "20:00"])]
        repository.unavailable = True
        await service.run(TARGET)

        repository.unavailable = False
        result = await service.run(TARGET)

        assert result.status == GenerationRunStatus.COMPLETED
        assert len(repository.records_for(TARGET)) == 2


@pytest.mark.unit
@pytest.mark.generation
class TestIntakeGenerationEntryPoints:
    """Test suite for run_for_today, backfill, the run log and summaries."""

    @pytest.mark.asyncio
    async def test_run_is_recorded_in_run_log(self, service, repository, run_log, make_order):
        repository.orders = [make_order()]

        result = await service.run(TARGET, GenerationTrigger.MANUAL)

        assert run_log.runs == [result]
        assert result.trigger == GenerationTrigger.MANUAL
        assert result.completed_at is not None
        assert result.duration_ms is not None

    @pytest.mark.asyncio
    async def test_run_for_today_uses_facility_date(self, service, repository, make_order):
        repository.orders = [make_order()]
        # 23:30 UTC on 30 June is already 1 July in London
        now = datetime(2024, 6, 30, 23, 30, tzinfo=timezone.utc)

        result = await service.run_for_today(now)

        assert result.target_date == date(2024, 7, 1)

    @pytest.mark.asyncio
    async def test_backfill_runs_each_date(self, service, repository, make_order):
        repository.orders = [make_order(times=["08:00"])]

        results = await service.backfill(date(2024, 1, 10), date(2024, 1, 12))

        assert [r.target_date for r in results] == [
            date(2024, 1, 10),
            date(2024, 1, 11),
            date(2024, 1, 12),
        ]
        assert all(r.trigger == GenerationTrigger.BACKFILL for r in results)
        assert len(repository.records) == 3

    @pytest.mark.asyncio
    async def test_backfill_stops_after_abort(self, service, repository, make_order):
        repository.orders = [make_order()]
        repository.unavailable = True

        results = await service.backfill(date(2024, 1, 10), date(2024, 1, 12))

        assert len(results) == 1
        assert results[0].status == GenerationRunStatus.ABORTED

    @pytest.mark.asyncio
    async def test_backfill_rejects_inverted_range(self, service):
        with pytest.raises(IntakeGenerationError):
            await service.backfill(date(2024, 1, 12), date(2024, 1, 10))

    @pytest.mark.asyncio
    async def test_new_order_seeds_a_week_from_its_start(self, service, repository, make_order):
        order = make_order(start_date=datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc))
        repository.orders = [order]
        now = datetime(2024, 1, 8, 12, 0, tzinfo=timezone.utc)

        results = await service.seed_new_order(order, now)

        assert [r.target_date for r in results] == [
            date(2024, 1, 10) + timedelta(days=i) for i in range(7)
        ]
        assert all(r.trigger == GenerationTrigger.ORDER_CREATED for r in results)
        assert len(repository.records) == 7

    @pytest.mark.asyncio
    async def test_new_order_seeding_starts_today_and_stops_at_end_date(
        self, service, repository, make_order
    ):
        order = make_order(end_date=datetime(2024, 1, 17, 20, 0, tzinfo=timezone.utc))
        repository.orders = [order]
        now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

        results = await service.seed_new_order(order, now)

        assert [r.target_date for r in results] == [
            date(2024, 1, 15),
            date(2024, 1, 16),
            date(2024, 1, 17),
        ]

    @pytest.mark.asyncio
    async def test_new_order_seeding_skips_prn_and_finished_orders(
        self, service, repository, make_order
    ):
        prn = make_order(schedule_type=ScheduleType.PRN, frequency=MedicationFrequency.AS_NEEDED)
        finished = make_order(end_date=datetime(2024, 1, 5, tzinfo=timezone.utc))
        now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

        assert await service.seed_new_order(prn, now) == []
        assert await service.seed_new_order(finished, now) == []
        assert repository.insert_calls == 0

    @pytest.mark.asyncio
    async def test_summarize_by_shift(self, service, repository, make_order):
        repository.orders = [make_order(times=["07:00", "09:00", "21:00"])]
        await service.run(TARGET)
        await service.run(date(2024, 1, 16))

        stored = [
            IntakeRecord(**record.model_dump(), created_at=datetime(2024, 1, 15, tzinfo=timezone.utc))
            for record in repository.records.values()
        ]
        day, night = service.summarize_by_shift(stored, TARGET)

        assert (day.shift, day.total, day.shift_window) == (ShiftLabel.DAY, 1, "8AM - 8PM")
        # 21:00 on the 15th and 07:00 on the 16th belong to the night of the 15th
        assert (night.shift, night.total, night.pending) == (ShiftLabel.NIGHT, 2, 2)

    def test_default_retry_manager_built_from_config(self, repository, generation_config):
        service = IntakeGenerationService(repository, config=generation_config)

        assert isinstance(service.retry_manager, RetryManager)
        assert service.retry_manager.max_attempts == generation_config.max_attempts
