"""
Alerts API endpoints for stock threshold warnings.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.api.v1.deps import get_evaluator, get_queries
from warehouse.core.database import get_db
from warehouse.core.security import get_current_user
from warehouse.models.user import User
from warehouse.schemas.alert import (
    AlertPriority,
    AlertResolve,
    AlertResponse,
    AlertListResponse,
    AlertType,
)
from warehouse.services.alerts import AlertEvaluator
from warehouse.services.queries import InventoryQueries

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    resolved: Optional[bool] = None,
    priority: Optional[AlertPriority] = None,
    alert_type: Optional[AlertType] = None,
    item_id: Optional[uuid.UUID] = None,
    current_user: User = Depends(get_current_user),
    queries: InventoryQueries = Depends(get_queries),
    db: AsyncSession = Depends(get_db)
):
    """
    List alerts, most urgent first.

    - **resolved**: Filter by resolution state
    - **priority**: Filter by priority (low, medium, high, critical)
    - **alert_type**: Filter by kind (out_of_stock, low_stock, overstock)
    - **item_id**: Filter by item
    """
    result = await queries.list_alerts(
        db,
        page=page,
        page_size=page_size,
        resolved=resolved,
        priority=priority,
        alert_type=alert_type,
        item_id=item_id
    )

    return AlertListResponse(
        items=result.items,
        total=result.total,
        open_count=await queries.count_open_alerts(db),
        page=result.page,
        page_size=result.page_size,
        pages=result.pages
    )


@router.put("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    alert_id: uuid.UUID,
    resolution: Optional[AlertResolve] = None,
    current_user: User = Depends(get_current_user),
    evaluator: AlertEvaluator = Depends(get_evaluator),
    db: AsyncSession = Depends(get_db)
):
    """
    Resolve an open alert.

    - **notes**: What was done
    - **action_taken**: RESTOCKED, ORDERED, ADJUSTED, IGNORED or OTHER (default)
    """
    resolution = resolution or AlertResolve()
    alert = await evaluator.resolve(
        db,
        alert_id,
        actor=current_user.id,
        notes=resolution.notes,
        action_taken=resolution.action_taken
    )
    return alert
