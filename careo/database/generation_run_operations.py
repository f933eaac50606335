# careo/database/generation_run_operations.py
"""
Generation Run Operations - audit log of daily intake generation runs.
"""

import json
from datetime import date
from typing import Any, Dict, List, Optional

import psycopg

from ..models.generation_run_model import GenerationFailure, GenerationRunResult
from .core import AsyncDatabase
from .exceptions import GenerationRunOperationError, RepositoryUnavailableError


class GenerationRunQueryBuilder:
    """Centralized query builder for generation run operations.

    IMPORTANT: For optimal performance, ensure these indexes exist:
    - CREATE INDEX idx_generation_runs_target_date ON intake_generation_runs(target_date DESC);
    - CREATE INDEX idx_generation_runs_started_at ON intake_generation_runs(started_at DESC);
    """

    @staticmethod
    def get_base_fields():
        return """
            run_id, target_date, trigger, status, orders_considered,
            orders_processed, records_inserted, records_existing, failures,
            abort_reason, started_at, completed_at
        """

    @staticmethod
    def build_insert_query():
        return """
            INSERT INTO intake_generation_runs (
                run_id, target_date, trigger, status, orders_considered,
                orders_processed, records_inserted, records_existing, failures,
                abort_reason, started_at, completed_at
            ) VALUES (
                %(run_id)s, %(target_date)s, %(trigger)s, %(status)s,
                %(orders_considered)s, %(orders_processed)s, %(records_inserted)s,
                %(records_existing)s, %(failures)s::jsonb, %(abort_reason)s,
                %(started_at)s, %(completed_at)s
            )
            ON CONFLICT (run_id) DO NOTHING
        """


class GenerationRunOperations:
    """
    Async database operations for the generation run log.
    """

    def __init__(self, db: AsyncDatabase) -> None:
        """Initialize with async database instance."""
        self.db = db

    async def record_run(self, result: GenerationRunResult) -> None:
        """Append a finished run to the log."""
        params = {
            "run_id": result.run_id,
            "target_date": result.target_date,
            "trigger": result.trigger.value,
            "status": result.status.value,
            "orders_considered": result.orders_considered,
            "orders_processed": result.orders_processed,
            "records_inserted": result.records_inserted,
            "records_existing": result.records_existing,
            "failures": json.dumps(
                [failure.model_dump(mode="json") for failure in result.failures]
            ),
            "abort_reason": result.abort_reason,
            "started_at": result.started_at,
            "completed_at": result.completed_at,
        }

        try:
            async with self.db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        GenerationRunQueryBuilder.build_insert_query(), params
                    )

        except ConnectionError as e:
            raise RepositoryUnavailableError(
                "Database unreachable", operation="record_run"
            ) from e
        except (psycopg.Error, KeyError, ValueError) as e:
            raise GenerationRunOperationError(
                "Failed to record generation run",
                operation="record_run",
                details={"run_id": result.run_id},
            ) from e

    async def get_recent_runs(
        self, limit: int = 20, target_date: Optional[date] = None
    ) -> List[GenerationRunResult]:
        """Most recent runs first, optionally for a single target date."""
        fields = GenerationRunQueryBuilder.get_base_fields()
        conditions = ""
        params: Dict[str, Any] = {"limit": limit}
        if target_date:
            conditions = "WHERE target_date = %(target_date)s"
            params["target_date"] = target_date

        query = f"""
            SELECT {fields}
            FROM intake_generation_runs
            {conditions}
            ORDER BY started_at DESC
            LIMIT %(limit)s
        """

        try:
            async with self.db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    rows = await cur.fetchall()
                    return [self._row_to_run(dict(row)) for row in rows]

        except ConnectionError as e:
            raise RepositoryUnavailableError(
                "Database unreachable", operation="get_recent_runs"
            ) from e
        except (psycopg.Error, KeyError, ValueError) as e:
            raise GenerationRunOperationError(
                "Failed to load generation runs", operation="get_recent_runs"
            ) from e

    def _row_to_run(self, row: Dict[str, Any]) -> GenerationRunResult:
        """Convert database row to GenerationRunResult model."""
        failures = row.get("failures") or []
        if isinstance(failures, str):
            failures = json.loads(failures)

        return GenerationRunResult(
            run_id=str(row["run_id"]),
            target_date=row["target_date"],
            trigger=row["trigger"],
            status=row["status"],
            orders_considered=row["orders_considered"],
            orders_processed=row["orders_processed"],
            records_inserted=row["records_inserted"],
            records_existing=row["records_existing"],
            failures=[GenerationFailure(**failure) for failure in failures],
            abort_reason=row.get("abort_reason"),
            started_at=row["started_at"],
            completed_at=row.get("completed_at"),
        )
