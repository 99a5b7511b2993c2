"""
Read-only queries over items, the ledger and alerts.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Generic, Optional, Sequence, TypeVar

from sqlalchemy import select, func, and_, or_, case
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.error_handlers import NotFoundError
from warehouse.models.alert import Alert
from warehouse.models.item import InventoryItem
from warehouse.models.transaction import InventoryTransaction
from warehouse.schemas.alert import AlertPriority, AlertType, PRIORITY_RANK
from warehouse.schemas.dashboard import DashboardStats
from warehouse.schemas.item import ItemType
from warehouse.schemas.transaction import TransactionResponse, TransactionType

T = TypeVar("T")

CENTS = Decimal("0.01")


@dataclass
class Page(Generic[T]):
    """One page of results plus the totals needed to page through the rest."""
    items: Sequence[T]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size


async def paginate(session: AsyncSession, query, page: int, page_size: int) -> Page:
    """Count the query's rows and fetch one page of it."""
    # Get total count
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar() or 0

    # Get paginated results
    query = query.offset((page - 1) * page_size).limit(page_size)
    result = await session.execute(query)
    return Page(list(result.scalars().all()), total, page, page_size)


class InventoryQueries:
    """Listings, history and dashboard aggregation. Never writes."""

    def __init__(self, recent_limit: int = 10):
        self.recent_limit = recent_limit

    async def get_item(self, session: AsyncSession, item_id: uuid.UUID) -> InventoryItem:
        item = await session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError("InventoryItem", item_id)
        return item

    async def list_items(
        self,
        session: AsyncSession,
        page: int = 1,
        page_size: int = 20,
        item_type: Optional[ItemType] = None,
        category_id: Optional[uuid.UUID] = None,
        supplier_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
        low_stock: bool = False,
        hazardous: Optional[bool] = None,
        reserved_only: bool = False,
        available_only: bool = False,
        active_only: bool = True
    ) -> Page[InventoryItem]:
        """
        List items, most recently updated first.

        Args:
            search: Case-insensitive match on name or SKU
            low_stock: Only items at or below their minimum threshold
            reserved_only: Only items with reserved stock
            available_only: Only items with stock available to promise
        """
        # Build query
        query = select(InventoryItem)

        if active_only:
            query = query.where(InventoryItem.is_active == True)  # noqa: E712

        if item_type is not None:
            query = query.where(InventoryItem.item_type == ItemType(item_type).value)

        if category_id is not None:
            query = query.where(InventoryItem.category_id == category_id)

        if supplier_id is not None:
            query = query.where(InventoryItem.supplier_id == supplier_id)

        if search:
            search_pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    InventoryItem.name.ilike(search_pattern),
                    InventoryItem.sku.ilike(search_pattern)
                )
            )

        if low_stock:
            query = query.where(InventoryItem.qty_on_hand <= InventoryItem.min_threshold)

        if hazardous is not None:
            query = query.where(InventoryItem.is_hazardous == hazardous)

        if reserved_only:
            query = query.where(InventoryItem.qty_reserved > 0)

        if available_only:
            query = query.where(InventoryItem.qty_available > 0)

        query = query.order_by(InventoryItem.updated_at.desc(), InventoryItem.id)
        return await paginate(session, query, page, page_size)

    async def list_transactions(
        self,
        session: AsyncSession,
        page: int = 1,
        page_size: int = 50,
        item_id: Optional[uuid.UUID] = None,
        type: Optional[TransactionType] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> Page[InventoryTransaction]:
        """List ledger entries, newest first."""
        query = select(InventoryTransaction)

        if item_id is not None:
            query = query.where(InventoryTransaction.item_id == item_id)

        if type is not None:
            query = query.where(InventoryTransaction.type == TransactionType(type).value)

        if start_date is not None:
            query = query.where(InventoryTransaction.created_at >= start_date)

        if end_date is not None:
            query = query.where(InventoryTransaction.created_at <= end_date)

        query = query.order_by(
            InventoryTransaction.created_at.desc(),
            InventoryTransaction.transaction_id.desc()
        )
        return await paginate(session, query, page, page_size)

    async def item_history(
        self,
        session: AsyncSession,
        item_id: uuid.UUID,
        limit: int = 50
    ) -> list[InventoryTransaction]:
        """Latest ledger entries for one item."""
        await self.get_item(session, item_id)
        result = await session.execute(
            select(InventoryTransaction)
            .where(InventoryTransaction.item_id == item_id)
            .order_by(
                InventoryTransaction.created_at.desc(),
                InventoryTransaction.transaction_id.desc()
            )
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_alerts(
        self,
        session: AsyncSession,
        page: int = 1,
        page_size: int = 20,
        resolved: Optional[bool] = None,
        priority: Optional[AlertPriority] = None,
        alert_type: Optional[AlertType] = None,
        item_id: Optional[uuid.UUID] = None
    ) -> Page[Alert]:
        """List alerts, most urgent first and then newest first."""
        query = select(Alert)

        if resolved is not None:
            query = query.where(Alert.is_resolved == resolved)

        if priority is not None:
            query = query.where(Alert.priority == AlertPriority(priority).value)

        if alert_type is not None:
            query = query.where(Alert.alert_type == AlertType(alert_type).value)

        if item_id is not None:
            query = query.where(Alert.item_id == item_id)

        rank = case(
            {level.value: value for level, value in PRIORITY_RANK.items()},
            value=Alert.priority,
            else_=0
        )
        query = query.order_by(rank.desc(), Alert.created_at.desc())
        return await paginate(session, query, page, page_size)

    async def count_open_alerts(self, session: AsyncSession) -> int:
        result = await session.execute(
            select(func.count(Alert.id)).where(Alert.is_resolved == False)  # noqa: E712
        )
        return result.scalar() or 0

    async def dashboard_stats(self, session: AsyncSession) -> DashboardStats:
        """
        Aggregate stock metrics over active items.

        Low stock counts items at or below their minimum that still have stock;
        empty items are counted as out of stock instead.
        """
        active = InventoryItem.is_active == True  # noqa: E712

        total_items = (await session.execute(
            select(func.count(InventoryItem.id)).where(active)
        )).scalar() or 0

        low_stock_count = (await session.execute(
            select(func.count(InventoryItem.id)).where(
                and_(
                    active,
                    InventoryItem.qty_on_hand <= InventoryItem.min_threshold,
                    InventoryItem.qty_on_hand > 0
                )
            )
        )).scalar() or 0

        out_of_stock_count = (await session.execute(
            select(func.count(InventoryItem.id)).where(
                and_(active, InventoryItem.qty_on_hand == 0)
            )
        )).scalar() or 0

        # Stock value
        rows = await session.execute(
            select(InventoryItem.qty_on_hand, InventoryItem.unit_cost).where(active)
        )
        total_value = sum(
            (Decimal(qty) * Decimal(str(cost or 0)) for qty, cost in rows),
            Decimal("0")
        ).quantize(CENTS)

        recent = await session.execute(
            select(InventoryTransaction)
            .order_by(
                InventoryTransaction.created_at.desc(),
                InventoryTransaction.transaction_id.desc()
            )
            .limit(self.recent_limit)
        )

        return DashboardStats(
            total_items=total_items,
            low_stock_count=low_stock_count,
            out_of_stock_count=out_of_stock_count,
            total_value=total_value,
            recent_transactions=[
                TransactionResponse.model_validate(txn) for txn in recent.scalars().all()
            ],
            open_alert_count=await self.count_open_alerts(session),
            last_updated=datetime.now(timezone.utc),
        )
