"""
Service Input Schemas

Pydantic models validating the field-level constraints of products, sales
and inventory updates before anything reaches the store.
"""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from retail_admin.database.models import ProductStatus, SalePlatform, SaleStatus
from retail_admin.services.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def coerce_enum(enum_cls: Type[Enum], value: Any) -> Any:
    """Accept enum members, values or names in any letter case."""
    if isinstance(value, enum_cls) or not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    for member in enum_cls:
        if member.value == lowered or member.name.lower() == lowered:
            return member
    return value


def describe_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "input"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def parse_input(schema: Type[SchemaT], data: Union[SchemaT, Mapping[str, Any]]) -> SchemaT:
    """Validate raw input against a schema, raising the service ValidationError."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(describe_errors(e)) from e


class _InputModel(BaseModel):
    # Blank strings strip to "" and then fail min_length
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    # Columns that exist in the table but may not be cleared with null
    NOT_NULLABLE: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in self.NOT_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


class ProductCreate(_InputModel):
    """Fields accepted when creating a product"""
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    category: str = Field(min_length=1, max_length=100)
    brand: Optional[str] = Field(default=None, max_length=100)
    sku: str = Field(min_length=1, max_length=50)
    status: ProductStatus = ProductStatus.ACTIVE

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return coerce_enum(ProductStatus, v)


class ProductUpdate(_InputModel):
    """Mutable product fields; sku is fixed after creation"""
    NOT_NULLABLE: ClassVar[Tuple[str, ...]] = ("name", "price", "category", "status")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    brand: Optional[str] = Field(default=None, max_length=100)
    status: Optional[ProductStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return coerce_enum(ProductStatus, v)


class InventoryUpdate(_InputModel):
    """Directly settable inventory fields"""
    NOT_NULLABLE: ClassVar[Tuple[str, ...]] = (
        "current_stock",
        "minimum_stock",
        "reorder_point",
        "reorder_quantity",
    )

    current_stock: Optional[int] = Field(default=None, ge=0)
    minimum_stock: Optional[int] = Field(default=None, ge=0)
    maximum_stock: Optional[int] = Field(default=None, ge=0)
    reorder_point: Optional[int] = Field(default=None, ge=0)
    reorder_quantity: Optional[int] = Field(default=None, ge=1)
    warehouse_location: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None


class SaleCreate(_InputModel):
    """A sale as recorded; immutable afterwards"""
    product_id: int
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    total_amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_email: Optional[str] = Field(default=None, max_length=255)
    order_number: str = Field(min_length=1, max_length=100)
    sale_date: Optional[datetime] = None
    platform: SalePlatform = SalePlatform.DIRECT
    status: SaleStatus = SaleStatus.COMPLETED

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError("must be a valid email address")
        return v

    @field_validator("platform", mode="before")
    @classmethod
    def normalize_platform(cls, v: Any) -> Any:
        return coerce_enum(SalePlatform, v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return coerce_enum(SaleStatus, v)
