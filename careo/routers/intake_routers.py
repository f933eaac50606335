# careo/routers/intake_routers.py
"""
Intake record and generation HTTP endpoints.

Role: Read access to generated intake records and manual generation triggers
Responsibilities: Record listing by resident and date range, per-shift
                 handover counts, manual run and backfill, run history
Interactions: IntakeRecordOperations for reads, IntakeGenerationService for
             runs, GenerationRunOperations for the run log
"""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query

from ..dependencies import (
    GenerationRunOperationsDep,
    IntakeGenerationServiceDep,
    IntakeRecordOperationsDep,
)
from ..enums import GenerationTrigger
from ..models.generation_run_model import BackfillRequest, GenerationRunRequest
from ..utils.router_helpers import ResponseFormatter, handle_exceptions

router = APIRouter(tags=["intake"])


@router.get("/intake-records", response_model=Dict[str, Any])
@handle_exceptions("fetch intake records")
async def get_intake_records(
    intake_ops: IntakeRecordOperationsDep,
    resident_id: Optional[str] = Query(None, description="Filter by resident"),
    order_id: Optional[str] = Query(None, description="Filter by medication order"),
    start_date: Optional[date] = Query(None, description="First scheduled date"),
    end_date: Optional[date] = Query(None, description="Last scheduled date"),
) -> Dict[str, Any]:
    """List intake records in dose order."""
    if start_date and end_date and end_date < start_date:
        raise HTTPException(
            status_code=400, detail="end_date cannot be earlier than start_date"
        )

    records = await intake_ops.get_intake_records(
        resident_id=resident_id,
        start_date=start_date,
        end_date=end_date,
        order_id=order_id,
    )
    return ResponseFormatter.success(
        "Intake records retrieved",
        data=[record.model_dump(mode="json") for record in records],
        total=len(records),
    )


@router.get("/intake-records/shift-summary", response_model=Dict[str, Any])
@handle_exceptions("fetch shift summary")
async def get_shift_summary(
    intake_ops: IntakeRecordOperationsDep,
    generation_service: IntakeGenerationServiceDep,
    shift_date: Optional[date] = Query(
        None, alias="date", description="Shift date, defaults to the current shift"
    ),
) -> Dict[str, Any]:
    """
    Dose counts per shift for handover.

    Night shift doses after midnight are counted under the date the night
    began.
    """
    if shift_date is None:
        shift_date = generation_service.classifier.current_shift().shift_date

    records = await intake_ops.get_intake_records_for_shift_date(shift_date)
    summaries = generation_service.summarize_by_shift(records, shift_date)
    return ResponseFormatter.success(
        "Shift summary retrieved",
        data=[summary.model_dump(mode="json") for summary in summaries],
    )


@router.post("/intake-generation/run", response_model=Dict[str, Any])
@handle_exceptions("run intake generation")
async def run_intake_generation(
    generation_service: IntakeGenerationServiceDep,
    request: Optional[GenerationRunRequest] = None,
) -> Dict[str, Any]:
    """
    Generate records for a date (facility-local today by default).

    Safe to call repeatedly; existing records are left untouched.
    """
    if request is not None and request.target_date is not None:
        result = await generation_service.run(
            request.target_date, GenerationTrigger.MANUAL
        )
    else:
        result = await generation_service.run_for_today(
            trigger=GenerationTrigger.MANUAL
        )

    return ResponseFormatter.success(
        f"Generation run {result.status.value}",
        data=result.model_dump(mode="json"),
    )


@router.post("/intake-generation/backfill", response_model=Dict[str, Any])
@handle_exceptions("backfill intake records")
async def backfill_intake_records(
    request: BackfillRequest,
    generation_service: IntakeGenerationServiceDep,
) -> Dict[str, Any]:
    """Generate records for every date in a range, oldest first."""
    results = await generation_service.backfill(request.start_date, request.end_date)
    return ResponseFormatter.success(
        f"Backfill processed {len(results)} date(s)",
        data=[result.model_dump(mode="json") for result in results],
    )


@router.get("/intake-generation/runs", response_model=Dict[str, Any])
@handle_exceptions("fetch generation runs")
async def get_generation_runs(
    run_ops: GenerationRunOperationsDep,
    target_date: Optional[date] = Query(None, description="Only runs for this date"),
    limit: int = Query(20, ge=1, le=200),
) -> Dict[str, Any]:
    """Most recent generation runs first."""
    runs = await run_ops.get_recent_runs(limit=limit, target_date=target_date)
    return ResponseFormatter.success(
        "Generation runs retrieved",
        data=[run.model_dump(mode="json") for run in runs],
    )
