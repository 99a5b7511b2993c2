"""
Catalog API endpoints for categories and suppliers.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from warehouse.core.database import get_db
from warehouse.core.security import get_current_user
from warehouse.error_handlers import DuplicateKeyError
from warehouse.models.catalog import Category, Supplier
from warehouse.models.user import User
from warehouse.schemas.catalog import (
    CategoryCreate,
    CategoryResponse,
    SupplierCreate,
    SupplierResponse,
)

router = APIRouter(tags=["Catalog"])


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an item category.

    - **name**: Unique category name
    - **code**: Unique short code, stored upper-cased
    """
    result = await db.execute(
        select(Category).where(
            or_(Category.name == category_data.name, Category.code == category_data.code)
        )
    )
    existing = result.scalars().first()
    if existing:
        if existing.code == category_data.code:
            raise DuplicateKeyError("Category", "code", category_data.code)
        raise DuplicateKeyError("Category", "name", category_data.name)

    category = Category(created_by=current_user.id, **category_data.model_dump())
    db.add(category)
    await db.commit()
    return category


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    active_only: bool = Query(True),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List categories by name."""
    query = select(Category).order_by(Category.name)
    if active_only:
        query = query.where(Category.is_active == True)  # noqa: E712

    result = await db.execute(query)
    return result.scalars().all()


@router.post("/suppliers", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    supplier_data: SupplierCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a supplier.

    - **name**: Supplier name
    - **code**: Unique short code, stored upper-cased
    """
    result = await db.execute(
        select(Supplier).where(Supplier.code == supplier_data.code)
    )
    if result.scalar_one_or_none():
        raise DuplicateKeyError("Supplier", "code", supplier_data.code)

    supplier = Supplier(created_by=current_user.id, **supplier_data.model_dump())
    db.add(supplier)
    await db.commit()
    return supplier


@router.get("/suppliers", response_model=list[SupplierResponse])
async def list_suppliers(
    active_only: bool = Query(True),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List suppliers by name."""
    query = select(Supplier).order_by(Supplier.name)
    if active_only:
        query = query.where(Supplier.is_active == True)  # noqa: E712

    result = await db.execute(query)
    return result.scalars().all()
