"""
Sales Queries

Reads over the immutable sales history, plus recording new sales. Every
sale read attaches its product.
"""

from datetime import date, datetime
from typing import Any, List, Mapping, Union

import structlog
from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError as SAIntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from retail_admin.database.models import Product, Sale, SalePlatform
from retail_admin.services.errors import IntegrityError, NotFound, ValidationError
from retail_admin.services.inventory import utcnow
from retail_admin.services.schemas import SaleCreate, coerce_enum, parse_input
from retail_admin.services.windows import range_window

logger = structlog.get_logger(__name__)


class SalesQueries:
    """Sale reads and recording for one unit of work."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _select(self):
        return (
            select(Sale)
            .options(selectinload(Sale.product))
            .execution_options(populate_existing=True)
        )

    async def _all(self, query) -> List[Sale]:
        result = await self.session.execute(
            query.order_by(Sale.sale_date.desc(), Sale.id.desc())
        )
        return list(result.scalars().all())

    async def get(self, sale_id: int) -> Sale:
        result = await self.session.execute(self._select().where(Sale.id == sale_id))
        sale = result.scalar_one_or_none()
        if sale is None:
            raise NotFound(f"Sale {sale_id} not found")
        return sale

    async def list_all(self) -> List[Sale]:
        return await self._all(self._select())

    async def list_by_product(self, product_id: int) -> List[Sale]:
        return await self._all(self._select().where(Sale.product_id == product_id))

    async def list_by_date_range(
        self,
        start: Union[date, datetime],
        end: Union[date, datetime],
    ) -> List[Sale]:
        """Sales of any status with start <= sale_date <= end."""
        begin, finish = range_window(start, end)
        return await self._all(
            self._select().where(
                and_(Sale.sale_date >= begin, Sale.sale_date <= finish)
            )
        )

    async def list_by_platform(self, platform: Union[SalePlatform, str]) -> List[Sale]:
        wanted = coerce_enum(SalePlatform, platform)
        if not isinstance(wanted, SalePlatform):
            raise ValidationError(f"Unknown sales platform: {platform!r}")
        return await self._all(self._select().where(Sale.platform == wanted))

    async def record(self, fields: Union[SaleCreate, Mapping[str, Any]]) -> Sale:
        """
        Record a completed (or otherwise) sale.

        total_amount is stored exactly as given. A value that does not match
        quantity * unit_price is logged as a data-quality warning.
        """
        payload = parse_input(SaleCreate, fields)

        if await self.session.get(Product, payload.product_id) is None:
            raise NotFound(f"Product {payload.product_id} not found")

        duplicate = await self.session.execute(
            select(Sale.id).where(Sale.order_number == payload.order_number)
        )
        if duplicate.scalar_one_or_none() is not None:
            raise ValidationError(f"Order number {payload.order_number!r} is already in use")

        expected = payload.unit_price * payload.quantity
        if expected != payload.total_amount:
            logger.warning(
                "Sale total differs from quantity x unit price",
                order_number=payload.order_number,
                expected=str(expected),
                total_amount=str(payload.total_amount),
            )

        values = payload.model_dump()
        if values["sale_date"] is None:
            values["sale_date"] = utcnow()

        sale = Sale(**values)
        self.session.add(sale)
        try:
            await self.session.flush()
        except SAIntegrityError as e:
            raise IntegrityError(
                f"Failed to record sale {payload.order_number!r}: {e.orig}"
            ) from e

        logger.info(
            "Sale recorded",
            sale_id=sale.id,
            product_id=sale.product_id,
            status=sale.status.value,
        )
        return await self.get(sale.id)
