"""
Database Operation Exceptions - Clean Error Handling Pattern

This module defines custom exceptions for database operations to enable
clean separation between data layer and logging layer.

Architecture Pattern:
- Database operations raise specific exceptions (no logging)
- Service layer catches exceptions and handles logging and retries
- Connection-level failures raise RepositoryUnavailableError so callers can
  tell "the store is down" apart from "this statement failed"

Usage Examples:
    # In database operations file:
    try:
        await cur.execute(query, params)
    except (ConnectionError, psycopg.OperationalError) as e:
        raise RepositoryUnavailableError(
            "Database unreachable", operation="insert_intake_record_if_absent"
        ) from e
    except (psycopg.Error, KeyError, ValueError) as e:
        raise IntakeRecordOperationError(
            "Failed to insert intake record",
            operation="insert_intake_record_if_absent",
        ) from e

    # In service layer:
    try:
        outcome = await repository.insert_intake_record_if_absent(record)
    except RepositoryUnavailableError:
        # systemic: abort the run
        raise
    except DatabaseOperationError as e:
        # transient: retry, then report
        ...
"""

from typing import Any, Dict, Optional


class DatabaseOperationError(Exception):
    """
    Base exception for all database operation failures.

    Provides a clean interface for database errors without requiring
    logging dependencies in the database layer.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}

    def __str__(self):
        if self.operation:
            return f"{self.operation}: {super().__str__()}"
        return super().__str__()


class RepositoryUnavailableError(DatabaseOperationError):
    """The database cannot be reached at all (connection or pool failure)."""

    pass


class MedicationOrderOperationError(DatabaseOperationError):
    """Medication order database operation errors."""

    pass


class IntakeRecordOperationError(DatabaseOperationError):
    """Intake record database operation errors."""

    pass


class GenerationRunOperationError(DatabaseOperationError):
    """Generation run audit log database operation errors."""

    pass
