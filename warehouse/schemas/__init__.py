"""
Pydantic schemas for request/response validation.
"""
from warehouse.schemas.user import (
    UserBase, UserCreate, UserResponse, LoginRequest, LoginResponse
)
from warehouse.schemas.catalog import (
    CategoryCreate, CategoryResponse, SupplierCreate, SupplierResponse
)
from warehouse.schemas.item import (
    ItemType, ItemBase, ItemCreate, ItemUpdate, ItemResponse,
    ItemListResponse, ItemDeleteResponse, normalize_sku
)
from warehouse.schemas.transaction import (
    TransactionType, TransactionSubType, TransactionStatus, ALLOWED_SUB_TYPES,
    StockMovement, StockAdjustment, ReservationRequest,
    TransactionResponse, TransactionListResponse, StockMutationResponse
)
from warehouse.schemas.alert import (
    AlertType, AlertPriority, AlertAction, PRIORITY_RANK,
    AlertResolve, AlertResponse, AlertListResponse
)
from warehouse.schemas.dashboard import DashboardStats, HealthCheck

__all__ = [
    # User schemas
    "UserBase", "UserCreate", "UserResponse", "LoginRequest", "LoginResponse",

    # Catalog schemas
    "CategoryCreate", "CategoryResponse", "SupplierCreate", "SupplierResponse",

    # Item schemas
    "ItemType", "ItemBase", "ItemCreate", "ItemUpdate", "ItemResponse",
    "ItemListResponse", "ItemDeleteResponse", "normalize_sku",

    # Transaction schemas
    "TransactionType", "TransactionSubType", "TransactionStatus", "ALLOWED_SUB_TYPES",
    "StockMovement", "StockAdjustment", "ReservationRequest",
    "TransactionResponse", "TransactionListResponse", "StockMutationResponse",

    # Alert schemas
    "AlertType", "AlertPriority", "AlertAction", "PRIORITY_RANK",
    "AlertResolve", "AlertResponse", "AlertListResponse",

    # Dashboard schemas
    "DashboardStats", "HealthCheck",
]
