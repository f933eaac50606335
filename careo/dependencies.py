# careo/dependencies.py
"""
Dependency providers for FastAPI routers.

Services are built per request from the shared async database and the
facility configuration in settings; they hold no per-request state.
"""

from typing import Annotated

from fastapi import Depends

from .config import settings
from .database import async_db
from .database.core import AsyncDatabase
from .database.generation_run_operations import GenerationRunOperations
from .database.intake_record_operations import IntakeRecordOperations
from .database.medication_order_operations import MedicationOrderOperations
from .database.order_repository import PostgresGenerationRunLog, PostgresOrderRepository
from .models.generation_run_model import GenerationConfig
from .models.shift_model import ShiftConfig
from .services.intake_generation_service import IntakeGenerationService


async def get_async_database() -> AsyncDatabase:
    """Get async database instance."""
    return async_db


def get_shift_config() -> ShiftConfig:
    """Facility shift configuration from settings."""
    return ShiftConfig.from_settings(settings)


async def get_intake_record_operations(
    db: Annotated[AsyncDatabase, Depends(get_async_database)],
) -> IntakeRecordOperations:
    return IntakeRecordOperations(db)


async def get_medication_order_operations(
    db: Annotated[AsyncDatabase, Depends(get_async_database)],
) -> MedicationOrderOperations:
    return MedicationOrderOperations(db)


async def get_generation_run_operations(
    db: Annotated[AsyncDatabase, Depends(get_async_database)],
) -> GenerationRunOperations:
    return GenerationRunOperations(db)


async def get_generation_service(
    db: Annotated[AsyncDatabase, Depends(get_async_database)],
    shift_config: Annotated[ShiftConfig, Depends(get_shift_config)],
) -> IntakeGenerationService:
    """Generation service wired to PostgreSQL."""
    return IntakeGenerationService(
        repository=PostgresOrderRepository(db, shift_config.timezone),
        shift_config=shift_config,
        config=GenerationConfig.from_settings(settings),
        run_log=PostgresGenerationRunLog(db),
    )


# Type annotations for dependency injection
AsyncDatabaseDep = Annotated[AsyncDatabase, Depends(get_async_database)]
ShiftConfigDep = Annotated[ShiftConfig, Depends(get_shift_config)]
IntakeRecordOperationsDep = Annotated[
    IntakeRecordOperations, Depends(get_intake_record_operations)
]
MedicationOrderOperationsDep = Annotated[
    MedicationOrderOperations, Depends(get_medication_order_operations)
]
GenerationRunOperationsDep = Annotated[
    GenerationRunOperations, Depends(get_generation_run_operations)
]
IntakeGenerationServiceDep = Annotated[
    IntakeGenerationService, Depends(get_generation_service)
]
