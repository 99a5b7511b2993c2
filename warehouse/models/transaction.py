"""
Inventory transaction model: the append-only stock ledger.
"""
from typing import Optional
import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Integer, Index, Text, DateTime, DECIMAL
from sqlalchemy.orm import Mapped, mapped_column

from warehouse.core.database import Base


class InventoryTransaction(Base):
    """One immutable stock movement on an inventory item."""

    __tablename__ = "inventory_transactions"

    transaction_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    # Linkage. No foreign key to the item: the ledger outlives deleted items.
    item_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    item_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)

    # Classification
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    sub_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Quantities
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), default=Decimal("0"), nullable=False)
    total_value: Mapped[Decimal] = mapped_column(DECIMAL(14, 2), default=Decimal("0"), nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    available_after: Mapped[int] = mapped_column(Integer, nullable=False)

    # Provenance
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    reference: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    batch_number: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="COMPLETED", nullable=False)

    # Indexes
    __table_args__ = (
        Index("idx_inventory_transactions_type", "type"),
        Index("idx_inventory_transactions_created_at", "created_at"),
        Index("idx_inventory_transactions_reference", "reference"),
    )

    def __repr__(self) -> str:
        return f"<InventoryTransaction(id={self.transaction_id}, type={self.type}, qty={self.quantity})>"

    @property
    def direction(self) -> str:
        """INBOUND for receipts and positive adjustments, OUTBOUND otherwise."""
        if self.type in ("IN", "ADJUST") and self.quantity > 0:
            return "INBOUND"
        return "OUTBOUND"
