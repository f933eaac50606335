# careo/routers/medication_order_routers.py
"""
Medication order HTTP endpoints.

Role: Order intake and lifecycle changes
Responsibilities: Create orders and seed their first week of intake records,
                 look orders up, move them to completed or cancelled
Interactions: MedicationOrderOperations for storage, IntakeGenerationService
             for the initial records
"""

import uuid
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from fastapi import Path as FastAPIPath

from ..dependencies import IntakeGenerationServiceDep, MedicationOrderOperationsDep
from ..models.medication_order_model import (
    MedicationOrderCreate,
    OrderStatusUpdate,
    can_transition,
)
from ..utils.router_helpers import (
    ResponseFormatter,
    handle_exceptions,
    validate_entity_exists,
)

router = APIRouter(tags=["medication-orders"])


@router.post("/medication-orders", status_code=201, response_model=Dict[str, Any])
@handle_exceptions("create medication order")
async def create_medication_order(
    order_data: MedicationOrderCreate,
    order_ops: MedicationOrderOperationsDep,
    generation_service: IntakeGenerationServiceDep,
) -> Dict[str, Any]:
    """
    Create an order and generate its intake records for the coming week.

    PRN orders are stored without records.
    """
    order = await order_ops.create_order(str(uuid.uuid4()), order_data)
    runs = await generation_service.seed_new_order(order)

    return ResponseFormatter.success(
        "Medication order created",
        data=order.model_dump(mode="json"),
        seeded_runs=[run.model_dump(mode="json") for run in runs],
    )


@router.get("/medication-orders/{order_id}", response_model=Dict[str, Any])
@handle_exceptions("fetch medication order")
async def get_medication_order(
    order_ops: MedicationOrderOperationsDep,
    order_id: str = FastAPIPath(..., description="Medication order id"),
) -> Dict[str, Any]:
    order = await validate_entity_exists(
        order_ops.get_order_by_id, order_id, "medication order"
    )
    return ResponseFormatter.success(
        "Medication order retrieved", data=order.model_dump(mode="json")
    )


@router.patch("/medication-orders/{order_id}/status", response_model=Dict[str, Any])
@handle_exceptions("update medication order status")
async def update_medication_order_status(
    update: OrderStatusUpdate,
    order_ops: MedicationOrderOperationsDep,
    order_id: str = FastAPIPath(..., description="Medication order id"),
) -> Dict[str, Any]:
    """
    Complete or cancel an active order.

    Completed and cancelled orders are final; records already generated are
    kept.
    """
    order = await validate_entity_exists(
        order_ops.get_order_by_id, order_id, "medication order"
    )
    if not can_transition(order.status, update.status):
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move order from {order.status.value} to {update.status.value}",
        )

    await order_ops.update_order_status(order_id, update.status)
    return ResponseFormatter.success(
        f"Medication order {update.status.value}",
        data={"id": order_id, "status": update.status.value},
    )
