"""
Stock alert model for threshold breaches on inventory items.
"""
from typing import Optional
import uuid
from datetime import datetime
from sqlalchemy import String, Boolean, Integer, Index, Text, DateTime, text
from sqlalchemy.orm import Mapped, mapped_column

from warehouse.core.database import Base


class Alert(Base):
    """Alert raised when an item's stock crosses one of its thresholds."""

    __tablename__ = "alerts"

    # No foreign key: alerts stay open for resolution after their item is deleted
    item_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)

    # Alert details
    alert_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False
    )  # 'out_of_stock', 'low_stock', 'overstock'
    priority: Mapped[str] = mapped_column(
        String(20),
        default="medium",
        nullable=False
    )  # 'low', 'medium', 'high', 'critical'

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qty_at_trigger: Mapped[int] = mapped_column(Integer, nullable=False)
    threshold: Mapped[int] = mapped_column(Integer, nullable=False)

    # Resolution
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    resolution_notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    action_taken: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Indexes
    __table_args__ = (
        Index("idx_alerts_priority", "priority"),
        Index("idx_alerts_resolved", "is_resolved"),
        Index("idx_alerts_created_at", "created_at"),
        # At most one open alert per (item, kind)
        Index(
            "uq_alerts_open_item_type",
            "item_id",
            "alert_type",
            unique=True,
            postgresql_where=text("NOT is_resolved"),
            sqlite_where=text("NOT is_resolved"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Alert(id={self.id}, type={self.alert_type}, priority={self.priority}, resolved={self.is_resolved})>"
