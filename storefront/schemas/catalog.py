"""
Storefront API — Catalog schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import Field, PlainSerializer, model_validator

from storefront.models.catalog import ProductStatus
from storefront.schemas.common import CamelModel

# Prices are exact in Python and plain JSON numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


# ─── Categories ───────────────────────────────────────────────────────────────

class CategoryOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    slug: str
    sort_order: int
    is_active: bool
    created_at: datetime | None = None


class CategorySummaryOut(CamelModel):
    id: int
    name: str
    slug: str
    product_count: int


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    slug: str = Field(..., min_length=1, max_length=120, pattern=SLUG_PATTERN)
    sort_order: int = Field(0, ge=0)


class CategoryUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    slug: str | None = Field(None, min_length=1, max_length=120, pattern=SLUG_PATTERN)
    sort_order: int | None = Field(None, ge=0)
    is_active: bool | None = None


# ─── Images ───────────────────────────────────────────────────────────────────

class ImageOut(CamelModel):
    id: int
    product_id: int
    image_url: str
    alt_text: str | None = None
    sort_order: int
    is_primary: bool
    is_active: bool
    created_at: datetime | None = None


class ImageCreate(CamelModel):
    image_url: str = Field(..., min_length=1, max_length=500)
    alt_text: str | None = Field(None, max_length=255)
    sort_order: int = Field(0, ge=0)
    is_primary: bool = False


class ImageUpdate(CamelModel):
    image_url: str | None = Field(None, min_length=1, max_length=500)
    alt_text: str | None = Field(None, max_length=255)
    sort_order: int | None = Field(None, ge=0)
    is_primary: bool | None = None
    is_active: bool | None = None


class ImageReorder(CamelModel):
    image_ids: list[int] = Field(..., min_length=1)


class ProductImagesSummary(CamelModel):
    total_images: int
    primary_image: ImageOut | None = None
    images: list[ImageOut]


def gallery_key(image: ImageOut) -> tuple:
    return (image.sort_order, image.created_at is None, image.created_at, image.id)


# ─── Variants ─────────────────────────────────────────────────────────────────

class VariantOut(CamelModel):
    id: int
    product_id: int
    color: str
    size: str
    quantity: int
    sku: str
    is_active: bool


class VariantCreate(CamelModel):
    color: str = Field(..., min_length=1, max_length=50)
    size: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(0, ge=0)
    sku: str | None = Field(None, min_length=1, max_length=255)


class VariantUpdate(CamelModel):
    quantity: int | None = Field(None, ge=0)
    sku: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None


# ─── Products ─────────────────────────────────────────────────────────────────

class ProductOut(CamelModel):
    id: int
    name: str
    description: str
    price: Money
    image_url: str | None = None
    category_id: int | None = None
    category: CategoryOut | None = None
    quantity: int
    colors: list[str] = []
    sizes: list[str] = []
    status: ProductStatus
    is_active: bool
    images: list[ImageOut] = []
    variants: list[VariantOut] = []
    primary_image: ImageOut | None = None
    primary_image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _gallery(self) -> "ProductOut":
        self.images = sorted((i for i in self.images if i.is_active), key=gallery_key)
        self.variants = [v for v in self.variants if v.is_active]
        self.primary_image = next((i for i in self.images if i.is_primary), None) or (
            self.images[0] if self.images else None
        )
        self.primary_image_url = self.primary_image.image_url if self.primary_image else self.image_url
        return self


class ProductSummaryOut(CamelModel):
    id: int
    name: str
    price: Money
    status: ProductStatus


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=5000)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    image_url: str | None = Field(None, max_length=500)
    category_id: int | None = None
    quantity: int = Field(0, ge=0)
    colors: list[str] = []
    sizes: list[str] = []


class ProductUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    image_url: str | None = Field(None, max_length=500)
    category_id: int | None = None
    quantity: int | None = Field(None, ge=0)
    colors: list[str] | None = None
    sizes: list[str] | None = None
    is_active: bool | None = None
