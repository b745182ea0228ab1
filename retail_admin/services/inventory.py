"""
Inventory Manager

Owns the stock counter of every product and the three ways to change it:

- set_fields: overwrite settings and counts directly, no audit note
- adjust_stock: signed delta with a mandatory audit note
- restock: positive delivery, stamps last_restocked_at

Each mutation is one read-modify-write on a single inventory row. The row's
version column makes the final UPDATE conditional on the version that was
read, so two writers interleaving on the same product cannot both succeed.
"""

from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError as SAIntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from retail_admin.database.models import (
    Inventory,
    StockStatus,
    classify_stock,
    is_low_stock,
    needs_reorder,
)
from retail_admin.services.errors import (
    ConcurrentUpdate,
    IntegrityError,
    InvalidAdjustment,
    InvalidQuantity,
    NotFound,
)
from retail_admin.services.schemas import InventoryUpdate, parse_input

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix."""
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def append_note(notes: Optional[str], line: str) -> str:
    """Append one audit line, keeping earlier lines oldest first."""
    if notes:
        return f"{notes}\n{line}"
    return line


class InventoryManager:
    """
    Stock-level operations for one unit of work.

    Args:
        session: Session the reads and writes run in. The caller commits.
        clock: Source of the current time for audit notes and restock stamps.
    """

    def __init__(self, session: AsyncSession, clock: Clock = utcnow):
        self.session = session
        self._clock = clock

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _select(self):
        return (
            select(Inventory)
            .options(selectinload(Inventory.product))
            .execution_options(populate_existing=True)
        )

    async def get(self, product_id: int) -> Inventory:
        """Inventory of one product with the product attached."""
        result = await self.session.execute(
            self._select().where(Inventory.product_id == product_id)
        )
        inventory = result.scalar_one_or_none()
        if inventory is None:
            raise NotFound(f"Inventory record not found for product {product_id}")
        return inventory

    async def list_all(self) -> List[Inventory]:
        result = await self.session.execute(
            self._select().order_by(Inventory.updated_at.desc(), Inventory.id.desc())
        )
        return list(result.scalars().all())

    async def list_low_stock(self) -> List[Inventory]:
        """Rows at or below their minimum stock, emptiest first."""
        result = await self.session.execute(
            self._select()
            .where(Inventory.current_stock <= Inventory.minimum_stock)
            .order_by(Inventory.current_stock.asc(), Inventory.id.asc())
        )
        return list(result.scalars().all())

    async def list_needing_reorder(self) -> List[Inventory]:
        """Rows at or below their reorder point, emptiest first."""
        result = await self.session.execute(
            self._select()
            .where(Inventory.current_stock <= Inventory.reorder_point)
            .order_by(Inventory.current_stock.asc(), Inventory.id.asc())
        )
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def set_fields(
        self,
        product_id: int,
        fields: Union[InventoryUpdate, Mapping[str, Any]],
    ) -> Inventory:
        """Overwrite any subset of the mutable inventory fields."""
        update = parse_input(InventoryUpdate, fields)
        inventory = await self._load_for_update(product_id)

        changes = update.changes()
        for name, value in changes.items():
            setattr(inventory, name, value)

        await self._write(inventory)
        logger.info(
            "Inventory updated",
            product_id=product_id,
            fields=sorted(changes),
        )
        return await self.get(product_id)

    async def adjust_stock(
        self,
        product_id: int,
        delta: int,
        reason: Optional[str] = None,
    ) -> Inventory:
        """
        Apply a signed stock delta and record it in the audit notes.

        Raises:
            NotFound: No inventory row for the product
            InvalidAdjustment: The result would be negative; nothing is written
        """
        inventory = await self._load_for_update(product_id)

        previous = inventory.current_stock
        new_stock = previous + delta
        if new_stock < 0:
            logger.warning(
                "Stock adjustment rejected",
                product_id=product_id,
                current_stock=previous,
                delta=delta,
            )
            raise InvalidAdjustment(
                f"Cannot reduce stock below zero: product {product_id} has "
                f"{previous} units, adjustment was {delta}"
            )

        line = f"{format_timestamp(self._clock())}: Stock adjusted by {delta}"
        if reason:
            line = f"{line}. Reason: {reason}"

        inventory.current_stock = new_stock
        inventory.notes = append_note(inventory.notes, line)

        await self._write(inventory)
        logger.info(
            "Stock adjusted",
            product_id=product_id,
            delta=delta,
            previous_stock=previous,
            current_stock=new_stock,
            reason=reason,
        )
        return await self.get(product_id)

    async def restock(self, product_id: int, quantity: int) -> Inventory:
        """
        Receive ``quantity`` units.

        Raises:
            NotFound: No inventory row for the product
            InvalidQuantity: quantity is zero or negative; nothing is written
        """
        inventory = await self._load_for_update(product_id)

        if quantity <= 0:
            raise InvalidQuantity(
                f"Restock quantity must be greater than zero, got {quantity}"
            )

        now = self._clock()
        previous = inventory.current_stock
        inventory.current_stock = previous + quantity
        inventory.last_restocked_at = now
        inventory.notes = append_note(
            inventory.notes,
            f"{format_timestamp(now)}: Restocked {quantity} units",
        )

        await self._write(inventory)
        logger.info(
            "Product restocked",
            product_id=product_id,
            quantity=quantity,
            previous_stock=previous,
            current_stock=inventory.current_stock,
        )
        return await self.get(product_id)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _load_for_update(self, product_id: int) -> Inventory:
        # populate_existing discards any stale identity-map copy
        result = await self.session.execute(
            select(Inventory)
            .where(Inventory.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        inventory = result.scalar_one_or_none()
        if inventory is None:
            raise NotFound(f"Inventory record not found for product {product_id}")
        return inventory

    async def _write(self, inventory: Inventory) -> None:
        product_id = inventory.product_id
        try:
            await self.session.flush()
        except StaleDataError as e:
            logger.warning("Concurrent inventory update detected", product_id=product_id)
            raise ConcurrentUpdate(
                f"Inventory for product {product_id} was modified by another "
                f"operation; reload and try again"
            ) from e
        except SAIntegrityError as e:
            raise IntegrityError(
                f"Inventory update for product {product_id} rejected by the store: {e.orig}"
            ) from e


__all__ = [
    "InventoryManager",
    "StockStatus",
    "append_note",
    "classify_stock",
    "format_timestamp",
    "is_low_stock",
    "needs_reorder",
    "utcnow",
]
