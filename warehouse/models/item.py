"""
Inventory item model: one stock-keeping unit and its stock state.
"""
from typing import Optional
import uuid
from decimal import Decimal
from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, Text, JSON, DECIMAL, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from warehouse.core.database import Base


class InventoryItem(Base):
    """Stocked good with derived available quantity."""

    __tablename__ = "inventory_items"

    # Identification
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # Classification
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    item_type: Mapped[str] = mapped_column(String(50), nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)

    # Pricing
    unit_cost: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), default=Decimal("0"), nullable=False)
    selling_price: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), default=Decimal("0"), nullable=False)

    # Stock information
    qty_on_hand: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    qty_reserved: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    qty_ordered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    qty_available: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Thresholds
    min_threshold: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_threshold: Mapped[int] = mapped_column(Integer, default=1000, nullable=False)
    reorder_point: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lead_time_days: Mapped[int] = mapped_column(Integer, default=7, nullable=False)

    # Sourcing and location
    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    warehouse: Mapped[str] = mapped_column(String(255), default="Main Warehouse", nullable=False)
    aisle: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    shelf: Mapped[str] = mapped_column(String(50), default="", nullable=False)

    # Handling
    is_hazardous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    hazard_info: Mapped[str] = mapped_column(Text, default="", nullable=False)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # Audit
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)

    # Optimistic concurrency counter, checked by every UPDATE/DELETE
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Indexes
    __table_args__ = (
        Index("idx_inventory_items_name", "name"),
        Index("idx_inventory_items_type", "item_type"),
        Index("idx_inventory_items_qty_on_hand", "qty_on_hand"),
        CheckConstraint("qty_on_hand >= 0", name="qty_on_hand_non_negative"),
        CheckConstraint("qty_reserved >= 0", name="qty_reserved_non_negative"),
        CheckConstraint("qty_reserved <= qty_on_hand", name="qty_reserved_within_on_hand"),
    )

    def __repr__(self) -> str:
        return f"<InventoryItem(id={self.id}, sku={self.sku}, on_hand={self.qty_on_hand})>"

    def recompute_available(self) -> int:
        """Derive available quantity from on-hand and reserved stock."""
        self.qty_available = self.qty_on_hand - self.qty_reserved
        return self.qty_available

    @property
    def is_low_stock(self) -> bool:
        """Check if item stock is at or below its minimum threshold."""
        return self.qty_on_hand <= self.min_threshold

    @property
    def stock_status(self) -> str:
        """Get human-readable stock status."""
        if self.qty_on_hand == 0:
            return "Out of Stock"
        elif self.is_low_stock:
            return "Low Stock"
        elif self.qty_on_hand >= self.max_threshold:
            return "Overstock"
        else:
            return "In Stock"

    @property
    def stock_value(self) -> Decimal:
        return Decimal(self.qty_on_hand) * (self.unit_cost or Decimal("0"))
