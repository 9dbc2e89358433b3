"""
Storefront API — Admin catalog routes (products, variants, categories)
All routes sit behind JWTAuthMiddleware. Deletes are soft.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db import catalog_ops
from storefront.db.database import get_db
from storefront.models.catalog import ProductStatus
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    VariantCreate,
    VariantOut,
    VariantUpdate,
)
from storefront.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    OPERATION_SUCCESS,
    ApiResponse,
    PaginatedResponse,
    Pagination,
)

router = APIRouter(prefix="/api/admin", tags=["admin-catalog"])


# ─── Products ─────────────────────────────────────────────────────────────────

@router.get("/products", response_model=PaginatedResponse[ProductOut])
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    category_id: int | None = Query(None, alias="categoryId", ge=1),
    search: str | None = Query(None, max_length=100),
    status: ProductStatus | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """All products, inactive ones included."""
    products, total = await catalog_ops.list_products(
        db,
        page,
        limit,
        include_inactive=True,
        category_id=category_id,
        search=search,
        status=status,
    )
    return PaginatedResponse[ProductOut](
        message=OPERATION_SUCCESS,
        data=[ProductOut.model_validate(p) for p in products],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/products/{product_id}", response_model=ApiResponse[ProductOut])
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await catalog_ops.get_product(db, product_id, active_only=False)
    return ApiResponse[ProductOut](message=OPERATION_SUCCESS, data=ProductOut.model_validate(product))


@router.post("/products", response_model=ApiResponse[ProductOut], status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, db: AsyncSession = Depends(get_db)):
    product = await catalog_ops.create_product(db, payload.model_dump())
    return ApiResponse[ProductOut](message="Product created successfully", data=ProductOut.model_validate(product))


@router.put("/products/{product_id}", response_model=ApiResponse[ProductOut])
async def update_product(product_id: int, payload: ProductUpdate, db: AsyncSession = Depends(get_db)):
    product = await catalog_ops.update_product(db, product_id, payload.model_dump(exclude_unset=True))
    return ApiResponse[ProductOut](message="Product updated successfully", data=ProductOut.model_validate(product))


@router.delete("/products/{product_id}", response_model=ApiResponse[None])
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    await catalog_ops.deactivate_product(db, product_id)
    return ApiResponse[None](message="Product deleted successfully")


# ─── Variants ─────────────────────────────────────────────────────────────────

@router.get("/products/{product_id}/variants", response_model=ApiResponse[list[VariantOut]])
async def list_variants(product_id: int, db: AsyncSession = Depends(get_db)):
    variants = await catalog_ops.list_variants(db, product_id)
    return ApiResponse[list[VariantOut]](
        message=OPERATION_SUCCESS, data=[VariantOut.model_validate(v) for v in variants]
    )


@router.post(
    "/products/{product_id}/variants",
    response_model=ApiResponse[VariantOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_variant(product_id: int, payload: VariantCreate, db: AsyncSession = Depends(get_db)):
    variant = await catalog_ops.create_variant(db, product_id, payload.model_dump())
    return ApiResponse[VariantOut](message="Variant created successfully", data=VariantOut.model_validate(variant))


@router.put("/products/{product_id}/variants/{variant_id}", response_model=ApiResponse[VariantOut])
async def update_variant(
    product_id: int, variant_id: int, payload: VariantUpdate, db: AsyncSession = Depends(get_db)
):
    variant = await catalog_ops.update_variant(
        db, product_id, variant_id, payload.model_dump(exclude_unset=True)
    )
    return ApiResponse[VariantOut](message="Variant updated successfully", data=VariantOut.model_validate(variant))


# ─── Categories ───────────────────────────────────────────────────────────────

@router.post("/categories", response_model=ApiResponse[CategoryOut], status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, db: AsyncSession = Depends(get_db)):
    category = await catalog_ops.create_category(db, payload.model_dump())
    return ApiResponse[CategoryOut](message="Category created successfully", data=CategoryOut.model_validate(category))


@router.put("/categories/{category_id}", response_model=ApiResponse[CategoryOut])
async def update_category(category_id: int, payload: CategoryUpdate, db: AsyncSession = Depends(get_db)):
    category = await catalog_ops.update_category(db, category_id, payload.model_dump(exclude_unset=True))
    return ApiResponse[CategoryOut](message="Category updated successfully", data=CategoryOut.model_validate(category))


@router.delete("/categories/{category_id}", response_model=ApiResponse[None])
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    await catalog_ops.deactivate_category(db, category_id)
    return ApiResponse[None](message="Category deleted successfully")
