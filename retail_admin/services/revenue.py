"""
Revenue Aggregator

Sums ``total_amount`` of completed sales over calendar windows. Pending,
cancelled and refunded sales never count towards any figure.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from retail_admin.database.models import Sale, SaleStatus
from retail_admin.services.windows import (
    day_window,
    month_window,
    week_window,
    year_window,
)

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Normalize a driver sum (Decimal, int, float or None) to two places."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS)


class RevenueAggregator:
    """Completed-sale revenue over closed datetime windows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def between(self, start: datetime, end: datetime) -> Decimal:
        """Revenue of completed sales with ``start <= sale_date <= end``."""
        result = await self.session.execute(
            select(func.sum(Sale.total_amount)).where(
                and_(
                    Sale.status == SaleStatus.COMPLETED,
                    Sale.sale_date >= start,
                    Sale.sale_date <= end,
                )
            )
        )
        total = to_money(result.scalar())
        logger.debug(
            "Revenue computed",
            start=start.isoformat(),
            end=end.isoformat(),
            total=str(total),
        )
        return total

    async def daily(self, day: Union[date, datetime]) -> Decimal:
        return await self.between(*day_window(day))

    async def weekly(self, start: Union[date, datetime]) -> Decimal:
        return await self.between(*week_window(start))

    async def monthly(self, year: int, month: int) -> Decimal:
        return await self.between(*month_window(year, month))

    async def annual(self, year: int) -> Decimal:
        return await self.between(*year_window(year))
