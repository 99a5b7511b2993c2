"""
Inventory API endpoints for item management.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.api.v1.deps import get_ledger, get_queries
from warehouse.core.config import settings
from warehouse.core.database import get_db
from warehouse.core.security import get_current_user
from warehouse.models.user import User
from warehouse.schemas.item import (
    ItemType,
    ItemCreate,
    ItemUpdate,
    ItemResponse,
    ItemListResponse,
    ItemDeleteResponse,
)
from warehouse.schemas.transaction import TransactionResponse
from warehouse.services.ledger import LedgerEngine
from warehouse.services.queries import InventoryQueries

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    current_user: User = Depends(get_current_user),
    ledger: LedgerEngine = Depends(get_ledger)
):
    """
    Create a new inventory item.

    - **sku**: Unique stock-keeping unit, stored upper-cased
    - **name**: Item name
    - **category_id**: Existing category
    - **qty_on_hand**: Initial stock, recorded as an IN/PRODUCTION transaction
    - **min_threshold** / **max_threshold**: Alert thresholds
    """
    result = await ledger.create_item(item_data, actor=current_user.id)
    return result.item


@router.get("", response_model=ItemListResponse)
async def list_items(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    item_type: Optional[ItemType] = None,
    category_id: Optional[uuid.UUID] = None,
    supplier_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
    low_stock: bool = False,
    hazardous: Optional[bool] = None,
    reserved_only: bool = False,
    available_only: bool = False,
    active_only: bool = True,
    current_user: User = Depends(get_current_user),
    queries: InventoryQueries = Depends(get_queries),
    db: AsyncSession = Depends(get_db)
):
    """
    List inventory items with pagination and filtering.

    - **page**: Page number (starts at 1)
    - **page_size**: Items per page
    - **search**: Search by name or SKU
    - **low_stock**: Only items at or below their minimum threshold
    - **reserved_only**: Only items with reserved stock
    - **available_only**: Only items with available stock
    - **active_only**: Show only active items
    """
    result = await queries.list_items(
        db,
        page=page,
        page_size=page_size,
        item_type=item_type,
        category_id=category_id,
        supplier_id=supplier_id,
        search=search,
        low_stock=low_stock,
        hazardous=hazardous,
        reserved_only=reserved_only,
        available_only=available_only,
        active_only=active_only
    )

    return ItemListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages
    )


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    queries: InventoryQueries = Depends(get_queries),
    db: AsyncSession = Depends(get_db)
):
    """Get a specific inventory item by ID."""
    return await queries.get_item(db, item_id)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: uuid.UUID,
    item_data: ItemUpdate,
    current_user: User = Depends(get_current_user),
    ledger: LedgerEngine = Depends(get_ledger)
):
    """
    Update an inventory item.

    Only provided fields are updated. A new **qty_on_hand** is recorded as an
    IN or OUT transaction for the difference, with **reason** as its reason.
    """
    result = await ledger.update_item(item_id, item_data, actor=current_user.id)
    return result.item


@router.delete("/{item_id}", response_model=ItemDeleteResponse)
async def delete_item(
    item_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    ledger: LedgerEngine = Depends(get_ledger)
):
    """
    Delete an inventory item.

    Remaining stock is written off with a final OUT transaction, which stays in
    the ledger after the item is gone.
    """
    result = await ledger.delete_item(item_id, actor=current_user.id)

    return ItemDeleteResponse(
        message="Item deleted successfully",
        item_id=result.item.id,
        sku=result.item.sku,
        transaction_id=result.transaction.transaction_id
    )


@router.get("/{item_id}/transactions", response_model=list[TransactionResponse])
async def get_item_transactions(
    item_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    queries: InventoryQueries = Depends(get_queries),
    db: AsyncSession = Depends(get_db)
):
    """Get the latest ledger entries of an item, newest first."""
    return await queries.item_history(db, item_id, limit=limit)
