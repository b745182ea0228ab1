"""
Core Services Module
"""
from .errors import (
    ConcurrentUpdate,
    IntegrityError,
    InvalidAdjustment,
    InvalidQuantity,
    NotFound,
    RetailAdminError,
    ValidationError,
)
from .inventory import InventoryManager
from .products import ProductLifecycle
from .revenue import RevenueAggregator
from .sales import SalesQueries

__all__ = [
    "ConcurrentUpdate",
    "IntegrityError",
    "InvalidAdjustment",
    "InvalidQuantity",
    "NotFound",
    "RetailAdminError",
    "ValidationError",
    "InventoryManager",
    "ProductLifecycle",
    "RevenueAggregator",
    "SalesQueries",
]
