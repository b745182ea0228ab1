"""
Database Models

Relational schema for the retail admin backend:

- Product: catalog entry, unique by SKU
- Sale: immutable sale record referencing a product
- Inventory: one stock row per product, with an append-only audit log

Stock-status classification lives here as pure functions so that model
properties and the services share a single definition.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class ProductStatus(str, Enum):
    """Product status enumeration"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


class SalePlatform(str, Enum):
    """Sales channel enumeration"""
    AMAZON = "amazon"
    WALMART = "walmart"
    DIRECT = "direct"
    OTHER = "other"


class SaleStatus(str, Enum):
    """Sale status enumeration"""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class StockStatus(str, Enum):
    """Derived stock classification, never persisted"""
    OUT_OF_STOCK = "OUT_OF_STOCK"
    LOW_STOCK = "LOW_STOCK"
    NORMAL = "NORMAL"
    OVERSTOCK = "OVERSTOCK"


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


# =============================================================================
# STOCK CLASSIFICATION
# =============================================================================

def classify_stock(
    current_stock: int,
    minimum_stock: int,
    maximum_stock: Optional[int] = None,
) -> StockStatus:
    """
    Classify a stock level.

    Out-of-stock and low-stock win over overstock, so a maximum configured
    below the minimum never reports OVERSTOCK for a low count.
    """
    if current_stock == 0:
        return StockStatus.OUT_OF_STOCK
    if current_stock <= minimum_stock:
        return StockStatus.LOW_STOCK
    if maximum_stock is not None and current_stock >= maximum_stock:
        return StockStatus.OVERSTOCK
    return StockStatus.NORMAL


def is_low_stock(current_stock: int, minimum_stock: int) -> bool:
    return current_stock <= minimum_stock


def needs_reorder(current_stock: int, reorder_point: int) -> bool:
    return current_stock <= reorder_point


# =============================================================================
# TABLES
# =============================================================================

class Product(Base):
    """
    Product Catalog Table

    Hard-deleted only while no sale references it; otherwise discontinued.
    """
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    brand: Mapped[Optional[str]] = mapped_column(String(100))
    sku: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    status: Mapped[ProductStatus] = mapped_column(
        SQLEnum(ProductStatus, name="product_status", values_callable=_enum_values),
        nullable=False,
        default=ProductStatus.ACTIVE,
    )

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    sales: Mapped[List["Sale"]] = relationship(
        back_populates="product",
        order_by="Sale.sale_date.desc()",
        passive_deletes="all",
    )
    inventory: Mapped[Optional["Inventory"]] = relationship(
        back_populates="product",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        Index("ix_products_category", "category"),
        Index("ix_products_status", "status"),
    )

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} status={self.status}>"


class Sale(Base):
    """
    Sales Fact Table

    total_amount is stored as given and is not recomputed from
    quantity * unit_price.
    """
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(String(255))
    customer_email: Mapped[Optional[str]] = mapped_column(String(255))
    order_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    sale_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    platform: Mapped[SalePlatform] = mapped_column(
        SQLEnum(SalePlatform, name="sale_platform", values_callable=_enum_values),
        nullable=False,
        default=SalePlatform.DIRECT,
    )
    status: Mapped[SaleStatus] = mapped_column(
        SQLEnum(SaleStatus, name="sale_status", values_callable=_enum_values),
        nullable=False,
        default=SaleStatus.COMPLETED,
    )

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    product: Mapped["Product"] = relationship(back_populates="sales")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_sales_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_sales_unit_price_non_negative"),
        CheckConstraint("total_amount >= 0", name="ck_sales_total_non_negative"),
        Index("ix_sales_sale_date", "sale_date"),
        Index("ix_sales_product_id", "product_id"),
        Index("ix_sales_status_date", "status", "sale_date"),
    )

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return f"<Sale id={self.id} order={self.order_number!r} status={self.status}>"


class Inventory(Base):
    """
    Inventory Table

    Exactly one row per product. The version column is the optimistic
    concurrency counter: every UPDATE is conditioned on the version read.
    """
    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    minimum_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    maximum_stock: Mapped[Optional[int]] = mapped_column(Integer)
    reorder_point: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    reorder_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    warehouse_location: Mapped[Optional[str]] = mapped_column(String(100))
    last_restocked_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    last_stock_count: Mapped[Optional[datetime]] = mapped_column(DateTime)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    product: Mapped["Product"] = relationship(back_populates="inventory")

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_inventory_current_stock_non_negative"),
        CheckConstraint("minimum_stock >= 0", name="ck_inventory_minimum_stock_non_negative"),
        CheckConstraint(
            "maximum_stock IS NULL OR maximum_stock >= 0",
            name="ck_inventory_maximum_stock_non_negative",
        ),
        CheckConstraint("reorder_point >= 0", name="ck_inventory_reorder_point_non_negative"),
        CheckConstraint("reorder_quantity >= 1", name="ck_inventory_reorder_quantity_positive"),
        Index("ix_inventory_current_stock", "current_stock"),
    )

    __mapper_args__ = {"version_id_col": version, "eager_defaults": True}

    @property
    def stock_status(self) -> StockStatus:
        return classify_stock(self.current_stock, self.minimum_stock, self.maximum_stock)

    @property
    def is_low_stock(self) -> bool:
        return is_low_stock(self.current_stock, self.minimum_stock)

    @property
    def needs_reorder(self) -> bool:
        return needs_reorder(self.current_stock, self.reorder_point)

    def __repr__(self) -> str:
        return (
            f"<Inventory product_id={self.product_id} "
            f"stock={self.current_stock} version={self.version}>"
        )
