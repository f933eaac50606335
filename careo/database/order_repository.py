# careo/database/order_repository.py
"""
Order Repository - the storage seam used by the intake generation job.

The job depends only on the OrderRepository and GenerationRunLog protocols,
so it can run against PostgreSQL in production and an in-memory store in
tests.
"""

from datetime import date
from typing import List, Protocol, runtime_checkable

from ..enums import InsertOutcome
from ..models.generation_run_model import GenerationRunResult
from ..models.intake_record_model import IntakeRecordCreate
from ..models.medication_order_model import OrderCandidate
from ..utils.time_utils import TimezoneLike
from .core import AsyncDatabase
from .generation_run_operations import GenerationRunOperations
from .intake_record_operations import IntakeRecordOperations
from .medication_order_operations import MedicationOrderOperations


@runtime_checkable
class OrderRepository(Protocol):
    """Reads candidate orders and writes intake records idempotently."""

    async def get_active_orders_for_date(
        self, target_date: date
    ) -> List[OrderCandidate]:
        """
        Orders that may be due on target_date.

        May over-approximate; the caller re-checks every order. Raises
        RepositoryUnavailableError when the store cannot be reached.
        """
        ...

    async def insert_intake_record_if_absent(
        self, record: IntakeRecordCreate
    ) -> InsertOutcome:
        """
        Insert a record unless its (order_id, scheduled_date, scheduled_time)
        key exists. Atomic with respect to concurrent callers.
        """
        ...


@runtime_checkable
class GenerationRunLog(Protocol):
    """Destination for finished generation run results."""

    async def record_run(self, result: GenerationRunResult) -> None: ...


class PostgresOrderRepository:
    """OrderRepository backed by the PostgreSQL operations classes."""

    def __init__(self, db: AsyncDatabase, timezone: TimezoneLike) -> None:
        self.timezone = timezone
        self.orders = MedicationOrderOperations(db)
        self.intake_records = IntakeRecordOperations(db)

    async def get_active_orders_for_date(
        self, target_date: date
    ) -> List[OrderCandidate]:
        return await self.orders.get_active_orders_for_date(target_date, self.timezone)

    async def insert_intake_record_if_absent(
        self, record: IntakeRecordCreate
    ) -> InsertOutcome:
        return await self.intake_records.insert_intake_record_if_absent(record)


class PostgresGenerationRunLog:
    """GenerationRunLog backed by the intake_generation_runs table."""

    def __init__(self, db: AsyncDatabase) -> None:
        self.runs = GenerationRunOperations(db)

    async def record_run(self, result: GenerationRunResult) -> None:
        await self.runs.record_run(result)
