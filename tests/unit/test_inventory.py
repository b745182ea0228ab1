"""
Unit Tests - Inventory Manager
"""
from datetime import datetime

import pytest

from retail_admin.database.models import StockStatus
from retail_admin.services import (
    ConcurrentUpdate,
    InvalidAdjustment,
    InvalidQuantity,
    InventoryManager,
    NotFound,
    ValidationError,
)


async def set_stock(database, product_id, **fields):
    async with database.session() as session:
        return await InventoryManager(session).set_fields(product_id, fields)


async def load(database, product_id):
    async with database.session() as session:
        return await InventoryManager(session).get(product_id)


class TestInventoryReads:
    """Tests for inventory lookups and listings"""

    async def test_new_product_starts_out_of_stock(self, database, product):
        """Test bootstrap values of a freshly created product"""
        inventory = await load(database, product.id)

        assert inventory.current_stock == 0
        assert inventory.minimum_stock == 10
        assert inventory.reorder_point == 20
        assert inventory.reorder_quantity == 50
        assert inventory.stock_status == StockStatus.OUT_OF_STOCK
        assert inventory.notes is None
        assert inventory.product.sku == product.sku

    async def test_missing_product(self, database):
        with pytest.raises(NotFound):
            await load(database, 999)

    async def test_low_stock_and_reorder_listings(self, database, create_product):
        """Test listings are emptiest first and use inclusive thresholds"""
        empty = await create_product()
        low = await create_product()
        reorder_only = await create_product()
        healthy = await create_product()
        await set_stock(database, low.id, current_stock=10)
        await set_stock(database, reorder_only.id, current_stock=20)
        await set_stock(database, healthy.id, current_stock=21)

        async with database.session() as session:
            manager = InventoryManager(session)
            low_stock = [i.product_id for i in await manager.list_low_stock()]
            reorder = [i.product_id for i in await manager.list_needing_reorder()]
            everything = await manager.list_all()

        assert low_stock == [empty.id, low.id]
        assert reorder == [empty.id, low.id, reorder_only.id]
        assert len(everything) == 4


class TestSetFields:
    """Tests for direct field updates"""

    async def test_overwrites_without_note(self, database, product):
        inventory = await set_stock(
            database,
            product.id,
            current_stock=35,
            maximum_stock=30,
            warehouse_location="A-12",
        )

        assert inventory.current_stock == 35
        assert inventory.warehouse_location == "A-12"
        assert inventory.stock_status == StockStatus.OVERSTOCK
        assert inventory.notes is None

    async def test_untouched_fields_kept(self, database, product):
        await set_stock(database, product.id, warehouse_location="B-3")
        inventory = await set_stock(database, product.id, current_stock=5)

        assert inventory.warehouse_location == "B-3"
        assert inventory.minimum_stock == 10

    async def test_clear_maximum_stock(self, database, product):
        await set_stock(database, product.id, maximum_stock=100)
        inventory = await set_stock(database, product.id, maximum_stock=None)

        assert inventory.maximum_stock is None

    @pytest.mark.parametrize(
        "fields",
        [{"current_stock": -1}, {"current_stock": None}, {"reorder_quantity": 0}],
    )
    async def test_invalid_values_rejected(self, database, product, fields):
        with pytest.raises(ValidationError):
            await set_stock(database, product.id, **fields)

        assert (await load(database, product.id)).current_stock == 0

    async def test_missing_product(self, database):
        with pytest.raises(NotFound):
            await set_stock(database, 999, current_stock=1)


class TestAdjustStock:
    """Tests for signed stock adjustments"""

    @pytest.mark.parametrize("delta", [5, 0, -3, -7])
    async def test_applies_delta(self, database, product, delta):
        await set_stock(database, product.id, current_stock=7)

        async with database.session() as session:
            inventory = await InventoryManager(session).adjust_stock(product.id, delta)

        assert inventory.current_stock == 7 + delta

    async def test_adjust_to_exactly_zero(self, database, product, fixed_clock):
        await set_stock(database, product.id, current_stock=7)

        async with database.session() as session:
            inventory = await InventoryManager(session, clock=fixed_clock).adjust_stock(
                product.id, -7, "Damaged in transit"
            )

        assert inventory.current_stock == 0
        assert inventory.stock_status == StockStatus.OUT_OF_STOCK
        assert inventory.notes == (
            "2024-03-15T10:00:00.000Z: Stock adjusted by -7. Reason: Damaged in transit"
        )

    async def test_below_zero_rejected_without_writing(self, database, product):
        await set_stock(database, product.id, current_stock=7)

        with pytest.raises(InvalidAdjustment):
            async with database.session() as session:
                await InventoryManager(session).adjust_stock(product.id, -8, "Recount")

        inventory = await load(database, product.id)
        assert inventory.current_stock == 7
        assert inventory.notes is None

    async def test_note_without_reason(self, database, product, fixed_clock):
        async with database.session() as session:
            inventory = await InventoryManager(session, clock=fixed_clock).adjust_stock(
                product.id, 4
            )

        assert inventory.notes == "2024-03-15T10:00:00.000Z: Stock adjusted by 4"
        assert inventory.last_restocked_at is None

    async def test_missing_product(self, database):
        with pytest.raises(NotFound):
            async with database.session() as session:
                await InventoryManager(session).adjust_stock(999, 1)


class TestRestock:
    """Tests for restocking"""

    async def test_consecutive_restocks(self, database, product, fixed_clock):
        """Test two deliveries add up and leave two ordered notes"""
        await set_stock(database, product.id, current_stock=10)

        async with database.session() as session:
            manager = InventoryManager(session, clock=fixed_clock)
            await manager.restock(product.id, 5)
            inventory = await manager.restock(product.id, 3)

        assert inventory.current_stock == 18
        assert inventory.last_restocked_at == datetime(2024, 3, 15, 10, 0, 1)
        assert inventory.notes.split("\n") == [
            "2024-03-15T10:00:00.000Z: Restocked 5 units",
            "2024-03-15T10:00:01.000Z: Restocked 3 units",
        ]

    async def test_notes_survive_reload(self, database, product, fixed_clock):
        async with database.session() as session:
            await InventoryManager(session, clock=fixed_clock).restock(product.id, 5)
        async with database.session() as session:
            await InventoryManager(session, clock=fixed_clock).adjust_stock(
                product.id, -2, "Returned to vendor"
            )

        notes = (await load(database, product.id)).notes.split("\n")
        assert notes[0].endswith("Restocked 5 units")
        assert notes[1].endswith("Stock adjusted by -2. Reason: Returned to vendor")

    @pytest.mark.parametrize("quantity", [0, -1, -50])
    async def test_non_positive_quantity_rejected(self, database, product, quantity):
        with pytest.raises(InvalidQuantity):
            async with database.session() as session:
                await InventoryManager(session).restock(product.id, quantity)

        inventory = await load(database, product.id)
        assert inventory.current_stock == 0
        assert inventory.last_restocked_at is None
        assert inventory.notes is None

    async def test_missing_product_checked_first(self, database):
        with pytest.raises(NotFound):
            async with database.session() as session:
                await InventoryManager(session).restock(999, 0)


class InterleavedManager(InventoryManager):
    """Lets another writer commit between this manager's read and its write"""

    def __init__(self, session, database):
        super().__init__(session)
        self.database = database

    async def _load_for_update(self, product_id):
        inventory = await super()._load_for_update(product_id)
        async with self.database.session() as other:
            await InventoryManager(other).restock(product_id, 5)
        return inventory


class TestConcurrentUpdates:
    """Tests for read-modify-write conflicts"""

    async def test_interleaved_write_is_rejected(self, database, product):
        await set_stock(database, product.id, current_stock=10)

        with pytest.raises(ConcurrentUpdate):
            async with database.session() as session:
                await InterleavedManager(session, database).adjust_stock(product.id, -2)

        inventory = await load(database, product.id)
        assert inventory.current_stock == 15
        assert inventory.notes.count("\n") == 0
        assert "Restocked 5 units" in inventory.notes

    async def test_sequential_writes_both_apply(self, database, product):
        async with database.session() as session:
            await InventoryManager(session).restock(product.id, 5)
        async with database.session() as session:
            await InventoryManager(session).restock(product.id, 5)

        assert (await load(database, product.id)).current_stock == 10
