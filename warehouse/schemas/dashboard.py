"""
Pydantic schemas for Dashboard endpoints.
"""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel

from warehouse.schemas.transaction import TransactionResponse


class DashboardStats(BaseModel):
    """Dashboard summary with key stock metrics."""
    total_items: int
    low_stock_count: int
    out_of_stock_count: int
    total_value: Decimal
    recent_transactions: list[TransactionResponse]
    open_alert_count: int
    last_updated: datetime


class HealthCheck(BaseModel):
    """Health check response."""
    status: str  # 'healthy', 'degraded'
    version: str
    database: bool
    subscribers: Optional[int] = None
    timestamp: datetime
