"""
Storefront API — Order schemas
"""
from datetime import datetime

from pydantic import ConfigDict, EmailStr, Field, field_validator

from storefront.models.order import OrderStatus
from storefront.schemas.catalog import Money
from storefront.schemas.common import CamelModel


class OrderItemIn(CamelModel):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)
    selected_color: str | None = Field(None, max_length=50)
    selected_size: str | None = Field(None, max_length=50)

    @field_validator("selected_color", "selected_size")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class OrderCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    customer_name: str = Field(..., min_length=2, max_length=100)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=8, max_length=20)
    delivery_address: str = Field(..., min_length=10, max_length=500)
    items: list[OrderItemIn] = Field(..., min_length=1)


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


class OrderProductOut(CamelModel):
    id: int
    name: str
    image_url: str | None = None


class OrderVariantOut(CamelModel):
    id: int
    color: str
    size: str
    sku: str


class OrderItemOut(CamelModel):
    id: int
    product_id: int
    product_variant_id: int | None = None
    quantity: int
    unit_price: Money
    selected_color: str | None = None
    selected_size: str | None = None
    product: OrderProductOut | None = None
    product_variant: OrderVariantOut | None = None


class OrderOut(CamelModel):
    id: int
    order_number: str
    customer_name: str
    customer_email: str
    customer_phone: str
    delivery_address: str
    status: OrderStatus
    total_amount: Money
    stock_deducted: bool
    items: list[OrderItemOut]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderSummaryOut(CamelModel):
    id: int
    order_number: str
    customer_name: str
    customer_phone: str
    status: OrderStatus
    total_amount: Money
    created_at: datetime | None = None
