"""
Pydantic schemas for Alert model.
"""
from typing import Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class AlertType(str, Enum):
    """Stock alert kinds."""
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    OVERSTOCK = "overstock"


class AlertPriority(str, Enum):
    """Alert priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Higher rank sorts first
PRIORITY_RANK = {
    AlertPriority.CRITICAL: 4,
    AlertPriority.HIGH: 3,
    AlertPriority.MEDIUM: 2,
    AlertPriority.LOW: 1,
}


class AlertAction(str, Enum):
    """What was done about an alert when it was resolved."""
    RESTOCKED = "RESTOCKED"
    ORDERED = "ORDERED"
    ADJUSTED = "ADJUSTED"
    IGNORED = "IGNORED"
    OTHER = "OTHER"


class AlertResolve(BaseModel):
    """Schema for resolving an alert."""
    notes: str = Field(default="", max_length=2000)
    action_taken: AlertAction = AlertAction.OTHER


class AlertResponse(BaseModel):
    """Schema for alert response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    item_id: uuid.UUID
    alert_type: AlertType
    priority: AlertPriority
    title: str
    message: Optional[str]
    qty_at_trigger: int
    threshold: int
    is_resolved: bool
    resolved_at: Optional[datetime]
    resolved_by: Optional[uuid.UUID]
    resolution_notes: str
    action_taken: Optional[AlertAction]
    created_at: datetime
    updated_at: datetime


class AlertListResponse(BaseModel):
    """Paginated alert list."""
    items: list[AlertResponse]
    total: int
    open_count: int
    page: int
    page_size: int
    pages: int
