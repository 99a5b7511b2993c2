"""
Pydantic schemas for InventoryItem model.
"""
from typing import Optional
from datetime import datetime
import uuid
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator


class ItemType(str, Enum):
    """Inventory item types."""
    RAW_MATERIAL = "Raw Material"
    FINISHED_PRODUCT = "Finished Product"
    WORK_IN_PROGRESS = "Work in Progress"
    CONSUMABLE = "Consumable"


def normalize_sku(value: str) -> str:
    """SKUs are compared trimmed and upper-cased."""
    return value.strip().upper()


class ItemBase(BaseModel):
    """Base inventory item schema."""
    name: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    category_id: uuid.UUID
    item_type: ItemType
    unit: str = Field(..., min_length=1, max_length=50)
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    selling_price: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    min_threshold: int = Field(default=0, ge=0)
    max_threshold: int = Field(default=1000, ge=0)
    lead_time_days: int = Field(default=7, ge=0)
    supplier_id: Optional[uuid.UUID] = None
    warehouse: str = Field(default="Main Warehouse", max_length=255)
    aisle: str = Field(default="", max_length=50)
    shelf: str = Field(default="", max_length=50)
    is_hazardous: bool = False
    hazard_info: str = ""
    tags: list[str] = Field(default_factory=list)


class ItemCreate(ItemBase):
    """Schema for creating an inventory item."""
    sku: str = Field(..., min_length=1, max_length=100)
    qty_on_hand: int = Field(default=0, ge=0)
    qty_reserved: int = Field(default=0, ge=0)
    qty_ordered: int = Field(default=0, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    is_active: bool = True

    @field_validator("sku")
    @classmethod
    def uppercase_sku(cls, value: str) -> str:
        value = normalize_sku(value)
        if not value:
            raise ValueError("SKU must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, value: list[str]) -> list[str]:
        return [tag.strip() for tag in value if tag.strip()]

    @model_validator(mode="after")
    def default_reorder_point(self):
        if self.reorder_point is None:
            self.reorder_point = self.min_threshold
        return self


class ItemUpdate(BaseModel):
    """
    Schema for updating an inventory item.

    Only provided fields are applied. ``qty_available`` is derived and is not
    accepted here; reserved stock changes through the reserve/release routes.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    item_type: Optional[ItemType] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    unit_cost: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    selling_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    qty_on_hand: Optional[int] = None
    qty_ordered: Optional[int] = Field(None, ge=0)
    min_threshold: Optional[int] = Field(None, ge=0)
    max_threshold: Optional[int] = Field(None, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    lead_time_days: Optional[int] = Field(None, ge=0)
    supplier_id: Optional[uuid.UUID] = None
    warehouse: Optional[str] = Field(None, max_length=255)
    aisle: Optional[str] = Field(None, max_length=50)
    shelf: Optional[str] = Field(None, max_length=50)
    is_hazardous: Optional[bool] = None
    hazard_info: Optional[str] = None
    tags: Optional[list[str]] = None
    is_active: Optional[bool] = None
    reason: Optional[str] = Field(None, max_length=1000)


class ItemResponse(BaseModel):
    """Schema for inventory item response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    sku: str
    name: str
    description: str
    category_id: uuid.UUID
    item_type: ItemType
    unit: str
    unit_cost: Decimal
    selling_price: Decimal
    qty_on_hand: int
    qty_reserved: int
    qty_ordered: int
    qty_available: int
    min_threshold: int
    max_threshold: int
    reorder_point: int
    lead_time_days: int
    supplier_id: Optional[uuid.UUID]
    warehouse: str
    aisle: str
    shelf: str
    is_hazardous: bool
    hazard_info: str
    tags: list[str]
    is_active: bool
    is_low_stock: bool
    stock_status: str
    version: int
    created_by: Optional[uuid.UUID]
    updated_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime


class ItemListResponse(BaseModel):
    """Paginated inventory item list response."""
    items: list[ItemResponse]
    total: int
    page: int
    page_size: int
    pages: int


class ItemDeleteResponse(BaseModel):
    """Confirmation returned after an item is removed."""
    message: str
    item_id: uuid.UUID
    sku: str
    transaction_id: str
