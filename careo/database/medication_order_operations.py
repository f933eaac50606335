# careo/database/medication_order_operations.py
"""
Medication Order Operations - Database layer for prescribed medication courses.

The generation job reads orders through get_active_orders_for_date(); the
create and status operations back the order lifecycle (active -> completed or
cancelled, never back).
"""

import json
from datetime import date, time, timedelta
from typing import Any, Dict, List, Optional

import psycopg

from ..enums import OrderStatus
from ..models.medication_order_model import (
    MalformedOrder,
    MedicationOrder,
    MedicationOrderCreate,
    OrderCandidate,
    can_transition,
)
from ..utils.time_utils import TimezoneLike, combine_local, utc_now
from .core import AsyncDatabase
from .exceptions import MedicationOrderOperationError, RepositoryUnavailableError


class MedicationOrderQueryBuilder:
    """Centralized query builder for medication order operations.

    IMPORTANT: For optimal performance, ensure these indexes exist:
    - CREATE INDEX idx_medication_orders_status_start ON medication_orders(status, start_date);
    - CREATE INDEX idx_medication_orders_resident ON medication_orders(resident_id);
    """

    @staticmethod
    def get_base_fields():
        """Get standard fields for medication order queries."""
        return """
            id, resident_id, name, schedule_type, frequency, times,
            time_quantities, start_date, end_date, status,
            organization_id, team_id, created_at, updated_at
        """

    @staticmethod
    def build_active_for_window_query():
        """
        Active orders whose validity window overlaps one local day.

        The day is passed as its UTC bounds [day_start, next_day_start) so the
        comparison stays on the indexed instant columns.
        """
        fields = MedicationOrderQueryBuilder.get_base_fields()
        return f"""
            SELECT {fields}
            FROM medication_orders
            WHERE status = %(status)s
              AND start_date < %(next_day_start)s
              AND (end_date IS NULL OR end_date >= %(day_start)s)
            ORDER BY resident_id, id
        """

    @staticmethod
    def build_insert_query():
        return """
            INSERT INTO medication_orders (
                id, resident_id, name, schedule_type, frequency, times,
                time_quantities, start_date, end_date, status,
                organization_id, team_id
            ) VALUES (
                %(id)s, %(resident_id)s, %(name)s, %(schedule_type)s, %(frequency)s,
                %(times)s, %(time_quantities)s::jsonb, %(start_date)s, %(end_date)s,
                %(status)s, %(organization_id)s, %(team_id)s
            )
            RETURNING *
        """


class MedicationOrderOperations:
    """
    Async database operations for medication orders.
    """

    def __init__(self, db: AsyncDatabase) -> None:
        """Initialize with async database instance."""
        self.db = db

    async def get_active_orders_for_date(
        self, target_date: date, timezone: TimezoneLike
    ) -> List[OrderCandidate]:
        """
        Get active orders whose validity window overlaps a facility-local date.

        This is a coarse, index-friendly filter; cadence and exact window
        checks are left to the recurrence expander. Each row is converted on
        its own, and a row that cannot be read comes back as a MalformedOrder
        instead of failing the query.

        Args:
            target_date: Facility-local calendar date
            timezone: Facility timezone used to bound the date

        Returns:
            Candidate orders ordered by resident
        """
        day_start = combine_local(target_date, time(0, 0), timezone)
        next_day_start = combine_local(target_date + timedelta(days=1), time(0, 0), timezone)
        params = {
            "status": OrderStatus.ACTIVE.value,
            "day_start": day_start,
            "next_day_start": next_day_start,
        }

        try:
            query = MedicationOrderQueryBuilder.build_active_for_window_query()
            async with self.db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    rows = await cur.fetchall()
                    return [self._row_to_candidate(dict(row)) for row in rows]

        except ConnectionError as e:
            raise RepositoryUnavailableError(
                "Database unreachable while loading orders",
                operation="get_active_orders_for_date",
            ) from e
        except (psycopg.Error, KeyError, ValueError) as e:
            raise MedicationOrderOperationError(
                "Failed to load active orders",
                operation="get_active_orders_for_date",
                details={"target_date": target_date.isoformat()},
            ) from e

    async def get_order_by_id(self, order_id: str) -> Optional[MedicationOrder]:
        """Get a medication order by id."""
        try:
            fields = MedicationOrderQueryBuilder.get_base_fields()
            query = f"SELECT {fields} FROM medication_orders WHERE id = %(id)s"

            async with self.db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, {"id": order_id})
                    row = await cur.fetchone()
                    return self._row_to_order(dict(row)) if row else None

        except ConnectionError as e:
            raise RepositoryUnavailableError(
                "Database unreachable", operation="get_order_by_id"
            ) from e
        except (psycopg.Error, KeyError, ValueError) as e:
            raise MedicationOrderOperationError(
                "Failed to load order",
                operation="get_order_by_id",
                details={"order_id": order_id},
            ) from e

    async def create_order(
        self, order_id: str, order_data: MedicationOrderCreate
    ) -> MedicationOrder:
        """
        Persist a validated medication order.

        Args:
            order_id: Id assigned by the caller
            order_data: Validated order input

        Returns:
            The stored order
        """
        params = {
            "id": order_id,
            "resident_id": order_data.resident_id,
            "name": order_data.name,
            "schedule_type": order_data.schedule_type.value,
            "frequency": order_data.frequency.value,
            "times": order_data.times,
            "time_quantities": json.dumps(order_data.time_quantities),
            "start_date": order_data.start_date,
            "end_date": order_data.end_date,
            "status": order_data.status.value,
            "organization_id": order_data.organization_id,
            "team_id": order_data.team_id,
        }

        try:
            query = MedicationOrderQueryBuilder.build_insert_query()
            async with self.db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    row = await cur.fetchone()
                    if not row:
                        raise ValueError("Insert returned no row")
                    return self._row_to_order(dict(row))

        except ConnectionError as e:
            raise RepositoryUnavailableError(
                "Database unreachable", operation="create_order"
            ) from e
        except (psycopg.Error, KeyError, ValueError) as e:
            raise MedicationOrderOperationError(
                "Failed to create order",
                operation="create_order",
                details={"order_id": order_id},
            ) from e

    async def update_order_status(self, order_id: str, new_status: OrderStatus) -> bool:
        """
        Move an order along its lifecycle.

        Returns:
            True if the order was updated

        Raises:
            MedicationOrderOperationError: If the order does not exist or the
                transition is not allowed
        """
        try:
            async with self.db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        "SELECT status FROM medication_orders WHERE id = %(id)s FOR UPDATE",
                        {"id": order_id},
                    )
                    row = await cur.fetchone()
                    if not row:
                        raise MedicationOrderOperationError(
                            "Order not found",
                            operation="update_order_status",
                            details={"order_id": order_id},
                        )

                    current = OrderStatus(row["status"])
                    if not can_transition(current, new_status):
                        raise MedicationOrderOperationError(
                            f"Cannot move order from {current.value} to {new_status.value}",
                            operation="update_order_status",
                            details={"order_id": order_id},
                        )

                    await cur.execute(
                        """
                        UPDATE medication_orders
                        SET status = %(status)s, updated_at = %(updated_at)s
                        WHERE id = %(id)s
                        """,
                        {"status": new_status.value, "updated_at": utc_now(), "id": order_id},
                    )
                    return cur.rowcount > 0

        except ConnectionError as e:
            raise RepositoryUnavailableError(
                "Database unreachable", operation="update_order_status"
            ) from e
        except (psycopg.Error, KeyError, ValueError) as e:
            raise MedicationOrderOperationError(
                "Failed to update order status",
                operation="update_order_status",
                details={"order_id": order_id},
            ) from e

    def _row_to_candidate(self, row: Dict[str, Any]) -> OrderCandidate:
        try:
            return self._row_to_order(row)
        except (KeyError, ValueError, TypeError) as e:
            resident_id = row.get("resident_id")
            return MalformedOrder(
                id=str(row.get("id")),
                resident_id=str(resident_id) if resident_id is not None else None,
                reason=str(e),
            )

    def _row_to_order(self, row: Dict[str, Any]) -> MedicationOrder:
        """Convert database row to MedicationOrder model."""
        quantities = row.get("time_quantities") or {}
        if isinstance(quantities, str):
            quantities = json.loads(quantities)

        return MedicationOrder(
            id=str(row["id"]),
            resident_id=str(row["resident_id"]),
            name=row.get("name") or "",
            schedule_type=row["schedule_type"],
            frequency=row["frequency"],
            times=list(row.get("times") or []),
            time_quantities=quantities,
            start_date=row["start_date"],
            end_date=row.get("end_date"),
            status=row["status"],
            organization_id=row.get("organization_id"),
            team_id=row.get("team_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
