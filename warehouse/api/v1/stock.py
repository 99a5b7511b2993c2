"""
Stock Management API endpoints for moving, counting and reserving stock.
"""
from fastapi import APIRouter, Depends, status

from warehouse.api.v1.deps import get_ledger
from warehouse.core.security import get_current_user
from warehouse.models.user import User
from warehouse.schemas.transaction import (
    StockMovement,
    StockAdjustment,
    ReservationRequest,
    StockMutationResponse,
)
from warehouse.services.ledger import LedgerEngine, MutationResult

router = APIRouter(prefix="/stock", tags=["Stock Management"])


def _to_response(result: MutationResult) -> StockMutationResponse:
    return StockMutationResponse.model_validate(
        {"item": result.item, "transaction": result.transaction},
        from_attributes=True
    )


@router.post("/movements", response_model=StockMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_stock_movement(
    movement: StockMovement,
    current_user: User = Depends(get_current_user),
    ledger: LedgerEngine = Depends(get_ledger)
):
    """
    Move stock in or out of an item.

    - **item_id**: Item UUID
    - **quantity**: Positive to add stock, negative to remove it
    - **type**: IN, OUT or ADJUST (defaults from the sign of quantity)
    - **sub_type**: Must belong to the type, e.g. IN/PURCHASE or OUT/SALE
    - **reason**: Defaults to 'Manual adjustment'
    """
    result = await ledger.adjust_quantity(
        movement.item_id,
        movement.quantity,
        actor=current_user.id,
        ledger_type=movement.type,
        sub_type=movement.sub_type,
        reason=movement.reason,
        unit_cost=movement.unit_cost,
        reference=movement.reference,
        notes=movement.notes,
        batch_number=movement.batch_number,
        supplier_id=movement.supplier_id,
        customer_id=movement.customer_id
    )
    return _to_response(result)


@router.post("/adjust", response_model=StockMutationResponse)
async def adjust_stock(
    adjustment: StockAdjustment,
    current_user: User = Depends(get_current_user),
    ledger: LedgerEngine = Depends(get_ledger)
):
    """
    Set on-hand stock to a counted quantity.

    The difference is recorded as IN/PRODUCTION or OUT/CONSUMPTION. A count
    equal to the current stock records nothing.
    """
    result = await ledger.set_quantity(
        adjustment.item_id,
        adjustment.new_quantity,
        actor=current_user.id,
        reason=adjustment.reason,
        reference=adjustment.reference
    )
    return _to_response(result)


@router.post("/reserve", response_model=StockMutationResponse)
async def reserve_stock(
    request: ReservationRequest,
    current_user: User = Depends(get_current_user),
    ledger: LedgerEngine = Depends(get_ledger)
):
    """
    Reserve on-hand stock for an order.

    - **quantity**: Units to reserve; reserved stock may not exceed on-hand stock
    - **sub_type**: ORDER_RESERVE (default) or PRODUCTION_RESERVE
    """
    result = await ledger.reserve(
        request.item_id,
        request.quantity,
        actor=current_user.id,
        sub_type=request.sub_type,
        reason=request.reason,
        reference=request.reference,
        customer_id=request.customer_id
    )
    return _to_response(result)


@router.post("/release", response_model=StockMutationResponse)
async def release_stock(
    request: ReservationRequest,
    current_user: User = Depends(get_current_user),
    ledger: LedgerEngine = Depends(get_ledger)
):
    """
    Release previously reserved stock.

    - **quantity**: Units to release, at most the reserved quantity
    - **sub_type**: ORDER_RELEASE (default) or PRODUCTION_RELEASE
    """
    result = await ledger.release(
        request.item_id,
        request.quantity,
        actor=current_user.id,
        sub_type=request.sub_type,
        reason=request.reason,
        reference=request.reference,
        customer_id=request.customer_id
    )
    return _to_response(result)
