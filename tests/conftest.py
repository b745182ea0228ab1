"""
Test Suite Configuration
"""
from datetime import datetime, timedelta
from decimal import Decimal
from itertools import count
from typing import AsyncGenerator, Callable

import pytest

from retail_admin.config.settings import InventorySettings
from retail_admin.database.connection import Database
from retail_admin.database.models import Product
from retail_admin.services import ProductLifecycle, SalesQueries


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """File-backed SQLite store so several sessions can interleave"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'retail_admin.db'}")
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest.fixture
def inventory_defaults() -> InventorySettings:
    return InventorySettings(
        initial_stock=0,
        minimum_stock=10,
        reorder_point=20,
        reorder_quantity=50,
    )


@pytest.fixture
def product_fields() -> Callable[..., dict]:
    """Build product creation fields with overrides"""
    serial = count(1)

    def build(**overrides) -> dict:
        n = next(serial)
        fields = {
            "name": f"Wireless Headphones {n}",
            "description": "Over-ear, noise cancelling",
            "price": Decimal("199.99"),
            "category": "Electronics",
            "brand": "Acme",
            "sku": f"ACME-WH-{n:03d}",
        }
        fields.update(overrides)
        return fields

    return build


@pytest.fixture
def create_product(database, product_fields, inventory_defaults):
    """Create and commit a product, returning it with inventory attached"""

    async def create(**overrides) -> Product:
        async with database.session() as session:
            return await ProductLifecycle(session, inventory_defaults).create(
                product_fields(**overrides)
            )

    return create


@pytest.fixture
async def product(create_product) -> Product:
    return await create_product()


@pytest.fixture
def record_sale(database):
    """Record and commit a sale for a product"""
    serial = count(1)

    async def record(product_id: int, **overrides):
        fields = {
            "product_id": product_id,
            "quantity": 1,
            "unit_price": Decimal("50.00"),
            "total_amount": Decimal("50.00"),
            "customer_name": "Jane Doe",
            "customer_email": "jane@example.com",
            "order_number": f"ORD-{next(serial):05d}",
            "sale_date": datetime(2024, 3, 15, 12, 0),
        }
        fields.update(overrides)
        async with database.session() as session:
            return await SalesQueries(session).record(fields)

    return record


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock advancing one second per call from 2024-03-15 10:00:00"""
    start = datetime(2024, 3, 15, 10, 0, 0)
    ticks = count()
    return lambda: start + timedelta(seconds=next(ticks))
