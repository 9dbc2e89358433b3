"""
Storefront API — Public category routes
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db import catalog_ops
from storefront.db.database import get_db
from storefront.schemas.catalog import CategoryOut, CategorySummaryOut
from storefront.schemas.common import (
    CATEGORY_PAGE_SIZE,
    MAX_PAGE_SIZE,
    OPERATION_SUCCESS,
    ApiResponse,
    PaginatedResponse,
    Pagination,
)

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=PaginatedResponse[CategoryOut])
async def list_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(CATEGORY_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    categories, total = await catalog_ops.list_categories(db, page, limit)
    return PaginatedResponse[CategoryOut](
        message=OPERATION_SUCCESS,
        data=[CategoryOut.model_validate(c) for c in categories],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/summary", response_model=ApiResponse[list[CategorySummaryOut]])
async def category_summaries(db: AsyncSession = Depends(get_db)):
    rows = await catalog_ops.category_summaries(db)
    return ApiResponse[list[CategorySummaryOut]](
        message=OPERATION_SUCCESS,
        data=[
            CategorySummaryOut(id=c.id, name=c.name, slug=c.slug, product_count=count)
            for c, count in rows
        ],
    )


@router.get("/slug/{slug}", response_model=ApiResponse[CategoryOut])
async def get_category_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    category = await catalog_ops.get_category_by_slug(db, slug)
    return ApiResponse[CategoryOut](message=OPERATION_SUCCESS, data=CategoryOut.model_validate(category))


@router.get("/{category_id}", response_model=ApiResponse[CategoryOut])
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await catalog_ops.get_category(db, category_id)
    return ApiResponse[CategoryOut](message=OPERATION_SUCCESS, data=CategoryOut.model_validate(category))
