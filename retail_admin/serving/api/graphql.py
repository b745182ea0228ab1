"""
GraphQL API

Strawberry schema exposing products, sales, revenue and inventory. Every
resolver opens one unit of work on the Database handle found in the
request context and delegates to a core service.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

import strawberry
import structlog
from fastapi import Request
from sqlalchemy import inspect as sa_inspect
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from retail_admin.database import models
from retail_admin.database.connection import Database
from retail_admin.services import (
    InventoryManager,
    NotFound,
    ProductLifecycle,
    RetailAdminError,
    RevenueAggregator,
    SalesQueries,
)

logger = structlog.get_logger(__name__)

strawberry.enum(models.ProductStatus, name="ProductStatus")
strawberry.enum(models.SalePlatform, name="SalePlatform")
strawberry.enum(models.SaleStatus, name="SaleStatus")
strawberry.enum(models.StockStatus, name="StockStatus")


def _database(info: Info) -> Database:
    return info.context["database"]


def _loaded(model: Any, attribute: str) -> bool:
    return attribute not in sa_inspect(model).unloaded


def _provided(data: Any) -> Dict[str, Any]:
    """Input fields the client actually sent, explicit nulls included."""
    return {k: v for k, v in vars(data).items() if v is not strawberry.UNSET}


# =============================================================================
# TYPES
# =============================================================================

@strawberry.type
class Product:
    id: int
    name: str
    description: Optional[str]
    price: Decimal
    category: str
    brand: Optional[str]
    sku: str
    status: models.ProductStatus
    created_at: datetime
    updated_at: datetime
    model: strawberry.Private[models.Product]

    @classmethod
    def from_model(cls, p: models.Product) -> "Product":
        return cls(
            id=p.id,
            name=p.name,
            description=p.description,
            price=p.price,
            category=p.category,
            brand=p.brand,
            sku=p.sku,
            status=p.status,
            created_at=p.created_at,
            updated_at=p.updated_at,
            model=p,
        )

    @strawberry.field
    async def sales(self, info: Info) -> List["Sale"]:
        """Sales of this product, newest first"""
        if _loaded(self.model, "sales"):
            rows = self.model.sales
        else:
            async with _database(info).session() as session:
                rows = await SalesQueries(session).list_by_product(self.id)
        return [Sale.from_model(s) for s in rows]

    @strawberry.field
    async def inventory(self, info: Info) -> Optional["Inventory"]:
        if _loaded(self.model, "inventory"):
            row = self.model.inventory
        else:
            async with _database(info).session() as session:
                try:
                    row = await InventoryManager(session).get(self.id)
                except NotFound:
                    row = None
        return Inventory.from_model(row) if row is not None else None


@strawberry.type
class Sale:
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    customer_name: Optional[str]
    customer_email: Optional[str]
    order_number: str
    sale_date: datetime
    platform: models.SalePlatform
    status: models.SaleStatus
    created_at: datetime
    model: strawberry.Private[models.Sale]

    @classmethod
    def from_model(cls, s: models.Sale) -> "Sale":
        return cls(
            id=s.id,
            product_id=s.product_id,
            quantity=s.quantity,
            unit_price=s.unit_price,
            total_amount=s.total_amount,
            customer_name=s.customer_name,
            customer_email=s.customer_email,
            order_number=s.order_number,
            sale_date=s.sale_date,
            platform=s.platform,
            status=s.status,
            created_at=s.created_at,
            model=s,
        )

    @strawberry.field
    async def product(self, info: Info) -> Product:
        if _loaded(self.model, "product"):
            row = self.model.product
        else:
            async with _database(info).session() as session:
                row = await ProductLifecycle(session).get(self.product_id)
        return Product.from_model(row)


@strawberry.type
class Inventory:
    id: int
    product_id: int
    current_stock: int
    minimum_stock: int
    maximum_stock: Optional[int]
    reorder_point: int
    reorder_quantity: int
    warehouse_location: Optional[str]
    last_restocked_at: Optional[datetime]
    last_stock_count: Optional[datetime]
    notes: Optional[str]
    stock_status: models.StockStatus
    is_low_stock: bool
    needs_reorder: bool
    created_at: datetime
    updated_at: datetime
    model: strawberry.Private[models.Inventory]

    @classmethod
    def from_model(cls, i: models.Inventory) -> "Inventory":
        return cls(
            id=i.id,
            product_id=i.product_id,
            current_stock=i.current_stock,
            minimum_stock=i.minimum_stock,
            maximum_stock=i.maximum_stock,
            reorder_point=i.reorder_point,
            reorder_quantity=i.reorder_quantity,
            warehouse_location=i.warehouse_location,
            last_restocked_at=i.last_restocked_at,
            last_stock_count=i.last_stock_count,
            notes=i.notes,
            stock_status=i.stock_status,
            is_low_stock=i.is_low_stock,
            needs_reorder=i.needs_reorder,
            created_at=i.created_at,
            updated_at=i.updated_at,
            model=i,
        )

    @strawberry.field
    async def product(self, info: Info) -> Product:
        if _loaded(self.model, "product"):
            row = self.model.product
        else:
            async with _database(info).session() as session:
                row = await ProductLifecycle(session).get(self.product_id)
        return Product.from_model(row)


# =============================================================================
# INPUTS
# =============================================================================

@strawberry.input
class ProductInput:
    name: str
    price: Decimal
    category: str
    sku: str
    description: Optional[str] = strawberry.UNSET
    brand: Optional[str] = strawberry.UNSET
    status: Optional[models.ProductStatus] = strawberry.UNSET


@strawberry.input
class UpdateProductInput:
    name: Optional[str] = strawberry.UNSET
    description: Optional[str] = strawberry.UNSET
    price: Optional[Decimal] = strawberry.UNSET
    category: Optional[str] = strawberry.UNSET
    brand: Optional[str] = strawberry.UNSET
    status: Optional[models.ProductStatus] = strawberry.UNSET


@strawberry.input
class InventoryUpdateInput:
    current_stock: Optional[int] = strawberry.UNSET
    minimum_stock: Optional[int] = strawberry.UNSET
    maximum_stock: Optional[int] = strawberry.UNSET
    reorder_point: Optional[int] = strawberry.UNSET
    reorder_quantity: Optional[int] = strawberry.UNSET
    warehouse_location: Optional[str] = strawberry.UNSET
    notes: Optional[str] = strawberry.UNSET


# =============================================================================
# QUERIES
# =============================================================================

@strawberry.type
class Query:

    # Products

    @strawberry.field
    async def products(self, info: Info) -> List[Product]:
        async with _database(info).session() as session:
            rows = await ProductLifecycle(session).list_all()
        return [Product.from_model(p) for p in rows]

    @strawberry.field
    async def product(self, info: Info, id: int) -> Optional[Product]:
        async with _database(info).session() as session:
            row = await ProductLifecycle(session).get(id)
        return Product.from_model(row)

    @strawberry.field
    async def products_by_category(self, info: Info, category: str) -> List[Product]:
        async with _database(info).session() as session:
            rows = await ProductLifecycle(session).list_by_category(category)
        return [Product.from_model(p) for p in rows]

    @strawberry.field
    async def products_by_status(
        self, info: Info, status: models.ProductStatus
    ) -> List[Product]:
        async with _database(info).session() as session:
            rows = await ProductLifecycle(session).list_by_status(status)
        return [Product.from_model(p) for p in rows]

    # Sales

    @strawberry.field
    async def sales(self, info: Info) -> List[Sale]:
        async with _database(info).session() as session:
            rows = await SalesQueries(session).list_all()
        return [Sale.from_model(s) for s in rows]

    @strawberry.field
    async def sale(self, info: Info, id: int) -> Optional[Sale]:
        async with _database(info).session() as session:
            row = await SalesQueries(session).get(id)
        return Sale.from_model(row)

    @strawberry.field
    async def sales_by_product(self, info: Info, product_id: int) -> List[Sale]:
        async with _database(info).session() as session:
            rows = await SalesQueries(session).list_by_product(product_id)
        return [Sale.from_model(s) for s in rows]

    @strawberry.field
    async def sales_by_date_range(
        self, info: Info, start_date: datetime, end_date: datetime
    ) -> List[Sale]:
        async with _database(info).session() as session:
            rows = await SalesQueries(session).list_by_date_range(start_date, end_date)
        return [Sale.from_model(s) for s in rows]

    @strawberry.field
    async def sales_by_platform(
        self, info: Info, platform: models.SalePlatform
    ) -> List[Sale]:
        async with _database(info).session() as session:
            rows = await SalesQueries(session).list_by_platform(platform)
        return [Sale.from_model(s) for s in rows]

    # Revenue

    @strawberry.field
    async def daily_revenue(
        self,
        info: Info,
        day: Annotated[date, strawberry.argument(name="date")],
    ) -> Decimal:
        async with _database(info).session() as session:
            return await RevenueAggregator(session).daily(day)

    @strawberry.field
    async def weekly_revenue(self, info: Info, start_date: date) -> Decimal:
        async with _database(info).session() as session:
            return await RevenueAggregator(session).weekly(start_date)

    @strawberry.field
    async def monthly_revenue(self, info: Info, year: int, month: int) -> Decimal:
        async with _database(info).session() as session:
            return await RevenueAggregator(session).monthly(year, month)

    @strawberry.field
    async def annual_revenue(self, info: Info, year: int) -> Decimal:
        async with _database(info).session() as session:
            return await RevenueAggregator(session).annual(year)

    # Inventory

    @strawberry.field
    async def inventory(self, info: Info) -> List[Inventory]:
        async with _database(info).session() as session:
            rows = await InventoryManager(session).list_all()
        return [Inventory.from_model(i) for i in rows]

    @strawberry.field
    async def inventory_by_product(self, info: Info, product_id: int) -> Optional[Inventory]:
        async with _database(info).session() as session:
            row = await InventoryManager(session).get(product_id)
        return Inventory.from_model(row)

    @strawberry.field
    async def low_stock_products(self, info: Info) -> List[Inventory]:
        async with _database(info).session() as session:
            rows = await InventoryManager(session).list_low_stock()
        return [Inventory.from_model(i) for i in rows]

    @strawberry.field
    async def products_needing_reorder(self, info: Info) -> List[Inventory]:
        async with _database(info).session() as session:
            rows = await InventoryManager(session).list_needing_reorder()
        return [Inventory.from_model(i) for i in rows]


# =============================================================================
# MUTATIONS
# =============================================================================

@strawberry.type
class Mutation:

    @strawberry.mutation
    async def create_product(self, info: Info, input: ProductInput) -> Product:
        async with _database(info).session() as session:
            row = await ProductLifecycle(session).create(_provided(input))
        return Product.from_model(row)

    @strawberry.mutation
    async def update_product(self, info: Info, id: int, input: UpdateProductInput) -> Product:
        async with _database(info).session() as session:
            row = await ProductLifecycle(session).update(id, _provided(input))
        return Product.from_model(row)

    @strawberry.mutation
    async def delete_product(self, info: Info, id: int) -> bool:
        async with _database(info).session() as session:
            return await ProductLifecycle(session).delete(id)

    @strawberry.mutation
    async def update_inventory(
        self, info: Info, product_id: int, input: InventoryUpdateInput
    ) -> Inventory:
        async with _database(info).session() as session:
            row = await InventoryManager(session).set_fields(product_id, _provided(input))
        return Inventory.from_model(row)

    @strawberry.mutation
    async def adjust_stock(
        self,
        info: Info,
        product_id: int,
        adjustment: int,
        reason: Optional[str] = None,
    ) -> Inventory:
        async with _database(info).session() as session:
            row = await InventoryManager(session).adjust_stock(product_id, adjustment, reason)
        return Inventory.from_model(row)

    @strawberry.mutation
    async def restock_product(self, info: Info, product_id: int, quantity: int) -> Inventory:
        async with _database(info).session() as session:
            row = await InventoryManager(session).restock(product_id, quantity)
        return Inventory.from_model(row)


# =============================================================================
# SCHEMA & ROUTER
# =============================================================================

class RetailAdminSchema(strawberry.Schema):
    """Schema that logs rejected operations with their error kind"""

    def process_errors(self, errors, execution_context=None) -> None:
        for error in errors:
            original = error.original_error
            if isinstance(original, RetailAdminError):
                logger.info(
                    "Operation rejected",
                    kind=original.kind,
                    message=original.message,
                    path=error.path,
                )
            else:
                logger.error(
                    "GraphQL execution error",
                    error=error.message,
                    path=error.path,
                    exc_info=original,
                )


schema = RetailAdminSchema(query=Query, mutation=Mutation)


async def get_context(request: Request) -> Dict[str, Any]:
    return {"database": request.app.state.database}


def create_graphql_router(graphiql: bool = True) -> GraphQLRouter:
    return GraphQLRouter(
        schema,
        path="",
        graphql_ide="graphiql" if graphiql else None,
        context_getter=get_context,
    )
