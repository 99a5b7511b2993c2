"""
Dashboard API endpoints for summary statistics.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.api.v1.deps import get_queries
from warehouse.core.database import get_db
from warehouse.core.security import get_current_user
from warehouse.models.user import User
from warehouse.schemas.dashboard import DashboardStats
from warehouse.services.queries import InventoryQueries

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    queries: InventoryQueries = Depends(get_queries),
    db: AsyncSession = Depends(get_db)
):
    """
    Get dashboard statistics.

    Counts cover active items only. Low stock excludes items that are out of
    stock; total value is on-hand quantity times unit cost.
    """
    return await queries.dashboard_stats(db)
