"""API v1 Router."""
from fastapi import APIRouter

from warehouse.api.v1 import (
    auth, inventory, stock, transactions, alerts, dashboard, catalog, realtime
)

api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(inventory.router)
api_router.include_router(stock.router)
api_router.include_router(transactions.router)
api_router.include_router(alerts.router)
api_router.include_router(dashboard.router)
api_router.include_router(catalog.router)
api_router.include_router(realtime.router)

__all__ = ["api_router"]
