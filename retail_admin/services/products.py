"""
Product Lifecycle Controller

Creation with inventory bootstrap, updates, and deletion that preserves
sales history. Every product read attaches its sales and its inventory.
"""

from typing import Any, List, Mapping, Optional, Union

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError as SAIntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from retail_admin.config import get_settings
from retail_admin.config.settings import InventorySettings
from retail_admin.database.models import Inventory, Product, ProductStatus, Sale
from retail_admin.services.errors import IntegrityError, NotFound, ValidationError
from retail_admin.services.schemas import (
    ProductCreate,
    ProductUpdate,
    coerce_enum,
    parse_input,
)

logger = structlog.get_logger(__name__)


class ProductLifecycle:
    """
    Product create/update/delete for one unit of work.

    Args:
        session: Session the reads and writes run in. The caller commits.
        inventory_defaults: Stock levels for the inventory row provisioned
            with every new product. Defaults to the configured values.
    """

    def __init__(
        self,
        session: AsyncSession,
        inventory_defaults: Optional[InventorySettings] = None,
    ):
        self.session = session
        self.inventory_defaults = inventory_defaults or get_settings().inventory

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _select(self):
        return (
            select(Product)
            .options(selectinload(Product.sales), selectinload(Product.inventory))
            .execution_options(populate_existing=True)
        )

    async def get(self, product_id: int) -> Product:
        result = await self.session.execute(
            self._select().where(Product.id == product_id)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product

    async def list_all(self) -> List[Product]:
        result = await self.session.execute(
            self._select().order_by(Product.created_at.desc(), Product.id.desc())
        )
        return list(result.scalars().all())

    async def list_by_category(self, category: str) -> List[Product]:
        result = await self.session.execute(
            self._select().where(Product.category == category).order_by(Product.id)
        )
        return list(result.scalars().all())

    async def list_by_status(self, status: Union[ProductStatus, str]) -> List[Product]:
        wanted = coerce_enum(ProductStatus, status)
        if not isinstance(wanted, ProductStatus):
            raise ValidationError(f"Unknown product status: {status!r}")
        result = await self.session.execute(
            self._select().where(Product.status == wanted).order_by(Product.id)
        )
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create(self, fields: Union[ProductCreate, Mapping[str, Any]]) -> Product:
        """
        Create a product together with its inventory row.

        Both rows are flushed in the session's transaction. If either write
        fails the whole transaction is rolled back, so a product never exists
        without inventory.
        """
        payload = parse_input(ProductCreate, fields)
        await self._ensure_unique_sku(payload.sku)

        product = Product(**payload.model_dump())
        self.session.add(product)
        try:
            await self.session.flush()
            self.session.add(self._bootstrap_inventory(product.id))
            await self.session.flush()
        except SAIntegrityError as e:
            await self.session.rollback()
            logger.error("Product creation rolled back", sku=payload.sku, error=str(e.orig))
            raise IntegrityError(f"Failed to create product {payload.sku!r}: {e.orig}") from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Product created", product_id=product.id, sku=product.sku)
        return await self.get(product.id)

    async def update(
        self,
        product_id: int,
        fields: Union[ProductUpdate, Mapping[str, Any]],
    ) -> Product:
        payload = parse_input(ProductUpdate, fields)
        product = await self._load(product_id)

        changes = payload.changes()
        for name, value in changes.items():
            setattr(product, name, value)

        try:
            await self.session.flush()
        except SAIntegrityError as e:
            raise IntegrityError(f"Failed to update product {product_id}: {e.orig}") from e

        logger.info("Product updated", product_id=product_id, fields=sorted(changes))
        return await self.get(product_id)

    async def delete(self, product_id: int) -> bool:
        """
        Delete a product.

        With sales history the product is only marked discontinued; without
        it the product and its inventory row are removed for good.
        """
        result = await self.session.execute(
            select(Product)
            .options(selectinload(Product.inventory))
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFound(f"Product {product_id} not found")

        sales_count = await self.count_sales(product_id)
        try:
            if sales_count > 0:
                product.status = ProductStatus.DISCONTINUED
                await self.session.flush()
            else:
                # A sale recorded after the count makes the store's RESTRICT fire
                await self.session.delete(product)
                await self.session.flush()
        except SAIntegrityError as e:
            raise IntegrityError(f"Failed to delete product {product_id}: {e.orig}") from e

        if sales_count > 0:
            logger.info(
                "Product discontinued",
                product_id=product_id,
                sales_count=sales_count,
            )
        else:
            logger.info("Product deleted", product_id=product_id)
        return True

    async def count_sales(self, product_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Sale.id)).where(Sale.product_id == product_id)
        )
        return result.scalar_one()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _bootstrap_inventory(self, product_id: int) -> Inventory:
        defaults = self.inventory_defaults
        return Inventory(
            product_id=product_id,
            current_stock=defaults.initial_stock,
            minimum_stock=defaults.minimum_stock,
            reorder_point=defaults.reorder_point,
            reorder_quantity=defaults.reorder_quantity,
        )

    async def _load(self, product_id: int) -> Product:
        product = await self.session.get(Product, product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product

    async def _ensure_unique_sku(self, sku: str) -> None:
        existing = await self.session.execute(select(Product.id).where(Product.sku == sku))
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(f"SKU {sku!r} is already in use")
