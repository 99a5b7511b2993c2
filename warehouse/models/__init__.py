"""
SQLAlchemy models for the warehouse inventory tracker.
Import all models here to ensure they're registered with SQLAlchemy.
"""
from warehouse.models.user import User
from warehouse.models.catalog import Category, Supplier
from warehouse.models.item import InventoryItem
from warehouse.models.transaction import InventoryTransaction
from warehouse.models.alert import Alert

__all__ = [
    "User",
    "Category",
    "Supplier",
    "InventoryItem",
    "InventoryTransaction",
    "Alert",
]
