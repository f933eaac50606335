# careo/services/intake_generation_service.py
"""
Intake Generation Service - the daily generation job.

Writes the intake records due on one facility-local date for every active
medication order, so that the stored records converge on exactly what the
recurrence expander produces for the current orders.

Business Rules:
- Every insert goes through the repository's idempotent insert; a record that
  already exists is counted, never rewritten
- Orders are independent and processed concurrently, bounded by
  max_concurrent_orders
- A malformed order, or a stored row that cannot be read as one, is skipped
  and reported as a VALIDATION failure
- A failing insert is retried up to max_attempts, then reported as a
  TRANSIENT failure for its order
- If the order query fails after its retries, or the repository becomes
  unreachable mid-run, the run is ABORTED: orders not yet started are left
  for the next run, which re-derives the same records
- An unexpected error while processing one order is reported as an
  UNEXPECTED failure for that order; a run never raises for per-order problems
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from functools import partial
from typing import Iterable, List, Optional

from pydantic import ValidationError

from ..constants import INITIAL_GENERATION_DAYS
from ..database.exceptions import DatabaseOperationError, RepositoryUnavailableError
from ..database.order_repository import GenerationRunLog, OrderRepository
from ..enums import (
    AdministrationStatus,
    GenerationFailureKind,
    GenerationRunStatus,
    GenerationTrigger,
    InsertOutcome,
    LogEmoji,
    LoggerName,
    LogSource,
    ShiftLabel,
)
from ..exceptions import IntakeGenerationError, OrderValidationError, RetryExhaustedError
from ..models.generation_run_model import (
    GenerationConfig,
    GenerationFailure,
    GenerationRunResult,
)
from ..models.intake_record_model import IntakeRecord, IntakeRecordCreate, ShiftSummary
from ..models.medication_order_model import MalformedOrder, MedicationOrder, OrderCandidate
from ..models.shift_model import ShiftConfig
from ..utils.intake_key_generator import IntakeKeyGenerator
from ..utils.retry_manager import RetryManager
from ..utils.time_utils import (
    format_date_string,
    iter_dates,
    local_date_of,
    local_today,
    utc_now,
)
from .logger import get_service_logger
from .scheduling import RecurrenceExpander, ScheduledDose, ShiftClassifier

logger = get_service_logger(LoggerName.INTAKE_GENERATION, LogSource.WORKER)


@dataclass
class _OrderOutcome:
    """What processing one order contributed to a run."""

    processed: bool = False
    inserted: int = 0
    existing: int = 0
    failures: List[GenerationFailure] = field(default_factory=list)


class _RunState:
    """Abort flag shared by the order tasks of one run."""

    def __init__(self) -> None:
        self.abort_reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self.abort_reason is not None

    def abort(self, reason: str) -> None:
        if self.abort_reason is None:
            self.abort_reason = reason


class IntakeGenerationService:
    """
    Generates intake records for a target date.

    The service holds no per-run state; concurrent runs for the same date
    are safe because the repository insert is idempotent.
    """

    def __init__(
        self,
        repository: OrderRepository,
        shift_config: Optional[ShiftConfig] = None,
        config: Optional[GenerationConfig] = None,
        run_log: Optional[GenerationRunLog] = None,
        retry_manager: Optional[RetryManager] = None,
    ):
        """
        Initialize the generation service.

        Args:
            repository: Order and intake record storage
            shift_config: Facility timezone and shift boundaries
            config: Retry and concurrency limits
            run_log: Optional audit log for finished runs
            retry_manager: Override for the retry policy built from config
        """
        self.repository = repository
        self.shift_config = shift_config or ShiftConfig()
        self.config = config or GenerationConfig()
        self.run_log = run_log
        self.classifier = ShiftClassifier(self.shift_config)
        self.expander = RecurrenceExpander(self.shift_config.timezone)
        self.retry_manager = retry_manager or RetryManager(
            max_attempts=self.config.max_attempts,
            retry_delays=self.config.retry_delays_seconds,
            name="IntakeGeneration",
        )

    # ────────────────────────────────────────────────────────────────────
    # Entry points
    # ────────────────────────────────────────────────────────────────────

    async def run(
        self,
        target_date: date,
        trigger: GenerationTrigger = GenerationTrigger.SCHEDULED,
    ) -> GenerationRunResult:
        """
        Generate every intake record due on target_date.

        Args:
            target_date: Facility-local calendar date
            trigger: What started the run, for the audit log

        Returns:
            GenerationRunResult with counts and per-order failures
        """
        result = GenerationRunResult(target_date=target_date, trigger=trigger)
        state = _RunState()

        logger.info(
            f"Generation run {result.run_id} started for {format_date_string(target_date)}",
            extra_context={"trigger": trigger.value},
            emoji=LogEmoji.RUNNING,
        )

        orders = await self._load_orders(target_date, state)
        if orders is not None:
            result.orders_considered = len(orders)
            outcomes = await self._process_orders(orders, target_date, state)
            for outcome in outcomes:
                if outcome.processed:
                    result.orders_processed += 1
                result.records_inserted += outcome.inserted
                result.records_existing += outcome.existing
                result.failures.extend(outcome.failures)

        result.abort_reason = state.abort_reason
        if state.aborted:
            result.status = GenerationRunStatus.ABORTED
        elif result.has_failures:
            result.status = GenerationRunStatus.COMPLETED_WITH_FAILURES
        else:
            result.status = GenerationRunStatus.COMPLETED
        result.completed_at = utc_now()

        self._log_result(result)
        await self._record_run(result)
        return result

    async def run_for_today(
        self,
        now: Optional[datetime] = None,
        trigger: GenerationTrigger = GenerationTrigger.SCHEDULED,
    ) -> GenerationRunResult:
        """Run for the facility-local date at `now` (defaults to the current time)."""
        return await self.run(local_today(self.shift_config.zone, now), trigger)

    async def backfill(
        self,
        start_date: date,
        end_date: date,
        trigger: GenerationTrigger = GenerationTrigger.BACKFILL,
    ) -> List[GenerationRunResult]:
        """
        Run for every date from start_date to end_date inclusive, in order.

        Stops after the first aborted run, since later dates would hit the
        same unavailable repository.

        Raises:
            IntakeGenerationError: If end_date is before start_date
        """
        if end_date < start_date:
            raise IntakeGenerationError("end_date cannot be earlier than start_date")

        results: List[GenerationRunResult] = []
        for target_date in iter_dates(start_date, end_date):
            result = await self.run(target_date, trigger)
            results.append(result)
            if result.status == GenerationRunStatus.ABORTED:
                logger.warning(
                    f"Backfill stopped at {format_date_string(target_date)} after an aborted run"
                )
                break
        return results

    async def seed_new_order(
        self, order: MedicationOrder, now: Optional[datetime] = None
    ) -> List[GenerationRunResult]:
        """
        Generate the first days of records for a newly created order.

        Covers INITIAL_GENERATION_DAYS local dates from the later of today and
        the order's start date, cut short by its end date. Runs are ordinary
        backfill runs, so any other order due on those dates converges too.

        Returns:
            One result per seeded date; empty for PRN or inactive orders and
            for orders that ended before today
        """
        if order.is_prn or not order.is_active:
            return []

        zone = self.shift_config.zone
        start = max(local_today(zone, now), local_date_of(order.start_date, zone))
        end = start + timedelta(days=INITIAL_GENERATION_DAYS - 1)
        if order.end_date is not None:
            end = min(end, local_date_of(order.end_date, zone))
        if end < start:
            return []

        logger.info(
            f"Seeding records for new order {order.id}",
            extra_context={
                "start_date": format_date_string(start),
                "end_date": format_date_string(end),
            },
        )
        return await self.backfill(start, end, trigger=GenerationTrigger.ORDER_CREATED)

    # ────────────────────────────────────────────────────────────────────
    # Order processing
    # ────────────────────────────────────────────────────────────────────

    async def _load_orders(
        self, target_date: date, state: _RunState
    ) -> Optional[List[OrderCandidate]]:
        try:
            orders, _ = await self.retry_manager.run_with_retry(
                partial(self.repository.get_active_orders_for_date, target_date),
                "Loading active orders",
                retryable=(DatabaseOperationError,),
            )
            return orders
        except RetryExhaustedError as e:
            logger.error(
                "Could not load active orders, aborting run",
                exception=e.last_error,
                error_context={"target_date": format_date_string(target_date)},
            )
            state.abort(str(e))
            return None

    async def _process_orders(
        self, orders: List[OrderCandidate], target_date: date, state: _RunState
    ) -> List[_OrderOutcome]:
        semaphore = asyncio.Semaphore(self.config.max_concurrent_orders)

        async def bounded(order: OrderCandidate) -> _OrderOutcome:
            async with semaphore:
                if state.aborted:
                    return _OrderOutcome()
                try:
                    return await self._process_order(order, target_date, state)
                except Exception as e:
                    logger.error(
                        f"Unexpected error processing order {order.id}",
                        exception=e,
                        error_context={"target_date": format_date_string(target_date)},
                    )
                    return _OrderOutcome(
                        failures=[
                            GenerationFailure(
                                order_id=order.id,
                                kind=GenerationFailureKind.UNEXPECTED,
                                message=str(e),
                            )
                        ]
                    )

        return list(await asyncio.gather(*(bounded(order) for order in orders)))

    async def _process_order(
        self, order: OrderCandidate, target_date: date, state: _RunState
    ) -> _OrderOutcome:
        outcome = _OrderOutcome()

        if isinstance(order, MalformedOrder):
            logger.warning(
                f"Skipping unreadable order {order.id}: {order.reason}",
                extra_context={"resident_id": order.resident_id},
                emoji=LogEmoji.SKIPPED,
            )
            outcome.processed = True
            outcome.failures.append(
                GenerationFailure(
                    order_id=order.id,
                    kind=GenerationFailureKind.VALIDATION,
                    message=order.reason,
                )
            )
            return outcome

        try:
            records = self.build_records(order, target_date)
        except (OrderValidationError, ValidationError) as e:
            logger.warning(
                f"Skipping malformed order {order.id}: {e}",
                extra_context={"resident_id": order.resident_id},
                emoji=LogEmoji.SKIPPED,
            )
            outcome.processed = True
            outcome.failures.append(
                GenerationFailure(
                    order_id=order.id,
                    kind=GenerationFailureKind.VALIDATION,
                    message=str(e),
                )
            )
            return outcome

        for record in records:
            if state.aborted:
                return outcome
            try:
                inserted, _ = await self.retry_manager.run_with_retry(
                    partial(self.repository.insert_intake_record_if_absent, record),
                    f"Insert {IntakeKeyGenerator.key_string(order.id, record.scheduled_date, record.scheduled_time)}",
                    retryable=(DatabaseOperationError,),
                    fatal=(RepositoryUnavailableError,),
                )
            except RepositoryUnavailableError as e:
                logger.error(
                    "Repository unavailable, aborting run",
                    exception=e,
                    error_context={"order_id": order.id},
                    emoji=LogEmoji.DATABASE,
                )
                state.abort(str(e))
                return outcome
            except RetryExhaustedError as e:
                logger.error(
                    f"Giving up on {record.scheduled_time} dose of order {order.id}",
                    error_context={"attempts": e.attempts, "error": str(e.last_error)},
                )
                outcome.failures.append(
                    GenerationFailure(
                        order_id=order.id,
                        kind=GenerationFailureKind.TRANSIENT,
                        message=str(e),
                        attempts=e.attempts,
                    )
                )
                continue

            if inserted == InsertOutcome.INSERTED:
                outcome.inserted += 1
            else:
                outcome.existing += 1

        outcome.processed = True
        return outcome

    # ────────────────────────────────────────────────────────────────────
    # Record assembly
    # ────────────────────────────────────────────────────────────────────

    def build_records(
        self, order: MedicationOrder, target_date: date
    ) -> List[IntakeRecordCreate]:
        """
        Candidate intake records for one order on one date.

        Raises:
            OrderValidationError: If the order is malformed
            ValidationError: If a stored dose quantity is invalid
        """
        return [
            self._build_record(order, dose)
            for dose in self.expander.expand(order, target_date)
        ]

    def _build_record(
        self, order: MedicationOrder, dose: ScheduledDose
    ) -> IntakeRecordCreate:
        # Classify by wall clock so DST gaps cannot move a dose across a shift boundary
        assignment = self.classifier.classify(dose.scheduled_at.replace(tzinfo=None))
        return IntakeRecordCreate(
            id=IntakeKeyGenerator.record_id(
                order.id, dose.scheduled_date, dose.scheduled_time
            ),
            order_id=order.id,
            resident_id=order.resident_id,
            scheduled_date=dose.scheduled_date,
            scheduled_time=dose.scheduled_time,
            scheduled_at=dose.scheduled_at,
            shift=assignment.shift,
            shift_date=assignment.shift_date,
            quantity=order.quantity_for(dose.scheduled_time),
            organization_id=order.organization_id,
            team_id=order.team_id,
        )

    # ────────────────────────────────────────────────────────────────────
    # Reporting
    # ────────────────────────────────────────────────────────────────────

    def summarize_by_shift(
        self, records: Iterable[IntakeRecord], shift_date: date
    ) -> List[ShiftSummary]:
        """
        Dose counts per shift for one shift date, day shift first.

        Records reported under other shift dates are ignored.
        """
        summaries = {
            label: ShiftSummary(
                shift_date=shift_date,
                shift=label,
                shift_window=self.classifier.describe_window(label),
            )
            for label in (ShiftLabel.DAY, ShiftLabel.NIGHT)
        }

        for record in records:
            if record.shift_date != shift_date:
                continue
            summary = summaries[record.shift]
            summary.total += 1
            if record.administration_status == AdministrationStatus.PENDING:
                summary.pending += 1
            elif record.administration_status == AdministrationStatus.ADMINISTERED:
                summary.administered += 1
            elif record.administration_status == AdministrationStatus.MISSED:
                summary.missed += 1
            elif record.administration_status == AdministrationStatus.SKIPPED:
                summary.skipped += 1

        return [summaries[ShiftLabel.DAY], summaries[ShiftLabel.NIGHT]]

    def _log_result(self, result: GenerationRunResult) -> None:
        context = {
            "target_date": format_date_string(result.target_date),
            "orders": result.orders_considered,
            "processed": result.orders_processed,
            "inserted": result.records_inserted,
            "existing": result.records_existing,
            "failures": len(result.failures),
            "duration_ms": result.duration_ms,
        }
        if result.status == GenerationRunStatus.ABORTED:
            logger.error(
                f"Generation run {result.run_id} aborted: {result.abort_reason}",
                error_context=context,
            )
        elif result.status == GenerationRunStatus.COMPLETED_WITH_FAILURES:
            logger.warning(
                f"Generation run {result.run_id} completed with failures",
                extra_context=context,
            )
        else:
            logger.info(
                f"Generation run {result.run_id} completed",
                extra_context=context,
                emoji=LogEmoji.COMPLETED,
            )

    async def _record_run(self, result: GenerationRunResult) -> None:
        if self.run_log is None:
            return
        try:
            await self.run_log.record_run(result)
        except DatabaseOperationError as e:
            logger.error(
                f"Failed to record generation run {result.run_id}",
                exception=e,
                emoji=LogEmoji.DATABASE,
            )
