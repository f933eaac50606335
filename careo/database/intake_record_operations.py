# careo/database/intake_record_operations.py
"""
Intake Record Operations - Database layer for scheduled doses.

Inserts are idempotent on the (order_id, scheduled_date, scheduled_time)
unique constraint: a conflicting insert is reported as ALREADY_EXISTS and the
stored record is left untouched, whatever its administration status.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import psycopg

from ..enums import InsertOutcome
from ..models.intake_record_model import IntakeRecord, IntakeRecordCreate
from ..utils.time_utils import format_date_string
from .core import AsyncDatabase
from .exceptions import IntakeRecordOperationError, RepositoryUnavailableError


class IntakeRecordQueryBuilder:
    """Centralized query builder for intake record operations.

    IMPORTANT: For optimal performance, ensure these indexes exist:
    - CREATE UNIQUE INDEX uq_intake_records_order_date_time ON intake_records(order_id, scheduled_date, scheduled_time);
    - CREATE INDEX idx_intake_records_resident_date ON intake_records(resident_id, scheduled_date);
    - CREATE INDEX idx_intake_records_shift ON intake_records(shift_date, shift);
    """

    @staticmethod
    def get_base_fields():
        """Get standard fields for intake record queries."""
        return """
            id, order_id, resident_id, scheduled_date, scheduled_time,
            scheduled_at, shift, shift_date, quantity, administration_status,
            organization_id, team_id, created_at, updated_at
        """

    @staticmethod
    def build_insert_if_absent_query():
        """Insert one record unless its natural key already exists."""
        return """
            INSERT INTO intake_records (
                id, order_id, resident_id, scheduled_date, scheduled_time,
                scheduled_at, shift, shift_date, quantity, administration_status,
                organization_id, team_id
            ) VALUES (
                %(id)s, %(order_id)s, %(resident_id)s, %(scheduled_date)s,
                %(scheduled_time)s, %(scheduled_at)s, %(shift)s, %(shift_date)s,
                %(quantity)s, %(administration_status)s, %(organization_id)s,
                %(team_id)s
            )
            ON CONFLICT (order_id, scheduled_date, scheduled_time) DO NOTHING
            RETURNING id
        """

    @staticmethod
    def build_filtered_query(where_conditions: List[str]):
        """Build filtered query for intake records."""
        fields = IntakeRecordQueryBuilder.get_base_fields()
        where_clause = (
            " WHERE " + " AND ".join(where_conditions) if where_conditions else ""
        )
        return f"""
            SELECT {fields}
            FROM intake_records
            {where_clause}
            ORDER BY scheduled_date, scheduled_time, resident_id, order_id
        """


class IntakeRecordOperations:
    """
    Async database operations for intake records.
    """

    def __init__(self, db: AsyncDatabase) -> None:
        """Initialize with async database instance."""
        self.db = db

    async def insert_intake_record_if_absent(
        self, record: IntakeRecordCreate
    ) -> InsertOutcome:
        """
        Insert an intake record unless one already exists for its key.

        Args:
            record: Candidate record

        Returns:
            INSERTED if a row was written, ALREADY_EXISTS otherwise

        Raises:
            RepositoryUnavailableError: If the database cannot be reached
            IntakeRecordOperationError: If the statement fails
        """
        params = {
            "id": record.id,
            "order_id": record.order_id,
            "resident_id": record.resident_id,
            "scheduled_date": record.scheduled_date,
            "scheduled_time": record.scheduled_time,
            "scheduled_at": record.scheduled_at,
            "shift": record.shift.value,
            "shift_date": record.shift_date,
            "quantity": record.quantity,
            "administration_status": record.administration_status.value,
            "organization_id": record.organization_id,
            "team_id": record.team_id,
        }

        try:
            query = IntakeRecordQueryBuilder.build_insert_if_absent_query()
            async with self.db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    row = await cur.fetchone()
                    if row:
                        return InsertOutcome.INSERTED
                    return InsertOutcome.ALREADY_EXISTS

        except ConnectionError as e:
            raise RepositoryUnavailableError(
                "Database unreachable while inserting intake record",
                operation="insert_intake_record_if_absent",
            ) from e
        except (psycopg.Error, KeyError, ValueError) as e:
            raise IntakeRecordOperationError(
                "Failed to insert intake record",
                operation="insert_intake_record_if_absent",
                details={
                    "order_id": record.order_id,
                    "scheduled_date": format_date_string(record.scheduled_date),
                    "scheduled_time": record.scheduled_time,
                },
            ) from e

    async def get_intake_records(
        self,
        resident_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        order_id: Optional[str] = None,
    ) -> List[IntakeRecord]:
        """
        Get intake records filtered by resident, order and scheduled date range.

        Args:
            resident_id: Only records for this resident
            start_date: First scheduled date (inclusive)
            end_date: Last scheduled date (inclusive)
            order_id: Only records for this order

        Returns:
            Matching records in dose order
        """
        conditions: List[str] = []
        params: Dict[str, Any] = {}

        if resident_id:
            conditions.append("resident_id = %(resident_id)s")
            params["resident_id"] = resident_id
        if order_id:
            conditions.append("order_id = %(order_id)s")
            params["order_id"] = order_id
        if start_date:
            conditions.append("scheduled_date >= %(start_date)s")
            params["start_date"] = start_date
        if end_date:
            conditions.append("scheduled_date <= %(end_date)s")
            params["end_date"] = end_date

        return await self._fetch_records(conditions, params, "get_intake_records")

    async def get_intake_records_for_date(
        self, scheduled_date: date
    ) -> List[IntakeRecord]:
        """Get every record scheduled on a facility-local date."""
        return await self._fetch_records(
            ["scheduled_date = %(scheduled_date)s"],
            {"scheduled_date": scheduled_date},
            "get_intake_records_for_date",
        )

    async def get_intake_records_for_shift_date(
        self, shift_date: date
    ) -> List[IntakeRecord]:
        """Get every record reported under a shift date (day and night)."""
        return await self._fetch_records(
            ["shift_date = %(shift_date)s"],
            {"shift_date": shift_date},
            "get_intake_records_for_shift_date",
        )

    async def _fetch_records(
        self, conditions: List[str], params: Dict[str, Any], operation: str
    ) -> List[IntakeRecord]:
        try:
            query = IntakeRecordQueryBuilder.build_filtered_query(conditions)
            async with self.db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    rows = await cur.fetchall()
                    return [self._row_to_intake_record(dict(row)) for row in rows]

        except ConnectionError as e:
            raise RepositoryUnavailableError(
                "Database unreachable", operation=operation
            ) from e
        except (psycopg.Error, KeyError, ValueError) as e:
            raise IntakeRecordOperationError(
                "Failed to load intake records", operation=operation
            ) from e

    def _row_to_intake_record(self, row: Dict[str, Any]) -> IntakeRecord:
        """Convert database row to IntakeRecord model."""
        return IntakeRecord(
            id=str(row["id"]),
            order_id=str(row["order_id"]),
            resident_id=str(row["resident_id"]),
            scheduled_date=row["scheduled_date"],
            scheduled_time=row["scheduled_time"],
            scheduled_at=row["scheduled_at"],
            shift=row["shift"],
            shift_date=row["shift_date"],
            quantity=row["quantity"],
            administration_status=row["administration_status"],
            organization_id=row.get("organization_id"),
            team_id=row.get("team_id"),
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
        )
