"""
Database Module
"""
from .connection import Database, init_database
from .models import (
    Base,
    Inventory,
    Product,
    ProductStatus,
    Sale,
    SalePlatform,
    SaleStatus,
    StockStatus,
)

__all__ = [
    "Database",
    "init_database",
    "Base",
    "Inventory",
    "Product",
    "ProductStatus",
    "Sale",
    "SalePlatform",
    "SaleStatus",
    "StockStatus",
]
