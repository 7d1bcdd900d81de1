# shop/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# users

class UserCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserRead(ApiModel):
    id: UUID
    name: str
    email: str


# products

class ProductCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(..., ge=0)


class ProductUpdate(ApiModel):
    """Partial update, omitted fields stay as they are."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)


class ProductOut(ApiModel):
    id: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int


# carts

class ItemIn(ApiModel):
    product_id: UUID
    quantity: int = Field(..., gt=0, description="Quantity, must be > 0")


class CartItemOut(ApiModel):
    product_id: UUID
    name: str
    quantity: int
    price: Decimal


class CartOut(ApiModel):
    id: UUID
    user_id: UUID
    status: str
    products: List[CartItemOut]
    total: Decimal


# orders

class OrderItemOut(ApiModel):
    product_id: UUID
    name: str
    quantity: int
    price: Decimal


class OrderOut(ApiModel):
    id: UUID
    user_id: UUID
    status: str
    products: List[OrderItemOut]
    total: Decimal
    order_date: datetime


class OrderPendingOut(ApiModel):
    order_id: UUID
    status: str
    detail: str


class MessageOut(ApiModel):
    message: str
