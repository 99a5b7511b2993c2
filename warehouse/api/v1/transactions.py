"""
Transaction ledger API endpoints. The ledger is read-only over HTTP.
"""
from typing import Optional
from datetime import datetime
import uuid
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from warehouse.api.v1.deps import get_queries
from warehouse.core.database import get_db
from warehouse.core.security import get_current_user
from warehouse.models.transaction import InventoryTransaction
from warehouse.models.user import User
from warehouse.schemas.transaction import (
    TransactionType,
    TransactionResponse,
    TransactionListResponse,
)
from warehouse.services.queries import InventoryQueries

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    item_id: Optional[uuid.UUID] = None,
    type: Optional[TransactionType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    queries: InventoryQueries = Depends(get_queries),
    db: AsyncSession = Depends(get_db)
):
    """
    List ledger entries with pagination and filtering.

    - **item_id**: Filter by item
    - **type**: Filter by transaction type
    - **start_date** / **end_date**: Inclusive creation time window
    """
    result = await queries.list_transactions(
        db,
        page=page,
        page_size=page_size,
        item_id=item_id,
        type=type,
        start_date=start_date,
        end_date=end_date
    )

    return TransactionListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a ledger entry by its TXN identifier."""
    result = await db.execute(
        select(InventoryTransaction).where(InventoryTransaction.transaction_id == transaction_id)
    )
    transaction = result.scalar_one_or_none()

    if not transaction:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transaction not found"
        )

    return transaction
