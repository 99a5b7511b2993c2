"""
Pydantic schemas for InventoryTransaction model.
"""
from typing import Optional
from datetime import datetime
from decimal import Decimal
import uuid
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum

from warehouse.schemas.item import ItemResponse


class TransactionType(str, Enum):
    """Ledger transaction types."""
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"
    TRANSFER = "TRANSFER"
    RESERVE = "RESERVE"
    UNRESERVE = "UNRESERVE"


class TransactionSubType(str, Enum):
    """Ledger transaction sub-types; each belongs to exactly one type."""
    PURCHASE = "PURCHASE"
    RETURN = "RETURN"
    PRODUCTION = "PRODUCTION"
    SALE = "SALE"
    CONSUMPTION = "CONSUMPTION"
    WASTE = "WASTE"
    DAMAGED = "DAMAGED"
    COUNT_ADJUST = "COUNT_ADJUST"
    LOSS_ADJUST = "LOSS_ADJUST"
    WAREHOUSE_TRANSFER = "WAREHOUSE_TRANSFER"
    ORDER_RESERVE = "ORDER_RESERVE"
    PRODUCTION_RESERVE = "PRODUCTION_RESERVE"
    ORDER_RELEASE = "ORDER_RELEASE"
    PRODUCTION_RELEASE = "PRODUCTION_RELEASE"


ALLOWED_SUB_TYPES: dict[TransactionType, frozenset[TransactionSubType]] = {
    TransactionType.IN: frozenset({
        TransactionSubType.PURCHASE, TransactionSubType.RETURN, TransactionSubType.PRODUCTION
    }),
    TransactionType.OUT: frozenset({
        TransactionSubType.SALE, TransactionSubType.CONSUMPTION,
        TransactionSubType.WASTE, TransactionSubType.DAMAGED
    }),
    TransactionType.ADJUST: frozenset({
        TransactionSubType.COUNT_ADJUST, TransactionSubType.LOSS_ADJUST
    }),
    TransactionType.TRANSFER: frozenset({TransactionSubType.WAREHOUSE_TRANSFER}),
    TransactionType.RESERVE: frozenset({
        TransactionSubType.ORDER_RESERVE, TransactionSubType.PRODUCTION_RESERVE
    }),
    TransactionType.UNRESERVE: frozenset({
        TransactionSubType.ORDER_RELEASE, TransactionSubType.PRODUCTION_RELEASE
    }),
}


class TransactionStatus(str, Enum):
    """Transaction approval status."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class StockMovement(BaseModel):
    """Schema for a signed stock movement on an item."""
    item_id: uuid.UUID
    quantity: int = Field(..., description="Positive to add stock, negative to remove it")
    type: Optional[TransactionType] = None
    sub_type: Optional[TransactionSubType] = None
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    reason: Optional[str] = Field(None, max_length=1000)
    reference: str = Field(default="", max_length=255)
    notes: str = ""
    batch_number: str = Field(default="", max_length=100)
    supplier_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None


class StockAdjustment(BaseModel):
    """Schema for setting on-hand stock to an absolute quantity."""
    item_id: uuid.UUID
    new_quantity: int
    reason: Optional[str] = Field(None, max_length=1000)
    reference: str = Field(default="", max_length=255)


class ReservationRequest(BaseModel):
    """Schema for reserving or releasing stock."""
    item_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    sub_type: Optional[TransactionSubType] = None
    reason: Optional[str] = Field(None, max_length=1000)
    reference: str = Field(default="", max_length=255)
    customer_id: Optional[uuid.UUID] = None


class TransactionResponse(BaseModel):
    """Schema for transaction response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    transaction_id: str
    item_id: uuid.UUID
    item_sku: str
    supplier_id: Optional[uuid.UUID]
    customer_id: Optional[uuid.UUID]
    type: TransactionType
    sub_type: TransactionSubType
    direction: str
    quantity: int
    unit_cost: Decimal
    total_value: Decimal
    balance_after: int
    available_after: int
    reason: str
    reference: str
    notes: str
    batch_number: str
    created_by: uuid.UUID
    approved_by: Optional[uuid.UUID]
    approved_at: Optional[datetime]
    status: TransactionStatus
    created_at: datetime


class TransactionListResponse(BaseModel):
    """Paginated transaction list."""
    items: list[TransactionResponse]
    total: int
    page: int
    page_size: int
    pages: int


class StockMutationResponse(BaseModel):
    """Item state after a stock mutation and the ledger entry it wrote."""
    item: ItemResponse
    transaction: Optional[TransactionResponse] = None
