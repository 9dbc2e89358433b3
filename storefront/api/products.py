"""
Storefront API — Public product routes
"""
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import ProductNotFound
from storefront.db import catalog_ops, image_ops
from storefront.db.database import get_db
from storefront.models.catalog import ProductStatus
from storefront.schemas.catalog import ImageOut, ProductImagesSummary, ProductOut, ProductSummaryOut
from storefront.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    OPERATION_SUCCESS,
    ApiResponse,
    PaginatedResponse,
    Pagination,
)

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=PaginatedResponse[ProductOut])
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    category_id: int | None = Query(None, alias="categoryId", ge=1),
    category_slug: str | None = Query(None, alias="categorySlug"),
    min_price: Decimal | None = Query(None, alias="minPrice", ge=0),
    max_price: Decimal | None = Query(None, alias="maxPrice", ge=0),
    search: str | None = Query(None, max_length=100),
    status: ProductStatus | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    products, total = await catalog_ops.list_products(
        db,
        page,
        limit,
        category_id=category_id,
        category_slug=category_slug,
        min_price=min_price,
        max_price=max_price,
        search=search,
        status=status,
    )
    return PaginatedResponse[ProductOut](
        message=OPERATION_SUCCESS,
        data=[ProductOut.model_validate(p) for p in products],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/summary/list", response_model=ApiResponse[list[ProductSummaryOut]])
async def product_summaries(db: AsyncSession = Depends(get_db)):
    products = await catalog_ops.list_product_summaries(db)
    return ApiResponse[list[ProductSummaryOut]](
        message=OPERATION_SUCCESS,
        data=[ProductSummaryOut.model_validate(p) for p in products],
    )


@router.get("/{product_id}", response_model=ApiResponse[ProductOut])
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await catalog_ops.get_product(db, product_id)
    return ApiResponse[ProductOut](message=OPERATION_SUCCESS, data=ProductOut.model_validate(product))


@router.get("/{product_id}/images", response_model=ApiResponse[ProductImagesSummary])
async def product_images(product_id: int, db: AsyncSession = Depends(get_db)):
    """Gallery of a product that can currently be bought."""
    product = await catalog_ops.get_product(db, product_id)
    if product.status != ProductStatus.AVAILABLE:
        raise ProductNotFound("Product not found or inactive")
    images = await image_ops.list_images(db, product_id)
    primary = image_ops.pick_primary(images)
    return ApiResponse[ProductImagesSummary](
        message=OPERATION_SUCCESS,
        data=ProductImagesSummary(
            total_images=len(images),
            primary_image=ImageOut.model_validate(primary) if primary else None,
            images=[ImageOut.model_validate(i) for i in images],
        ),
    )
