"""
Storefront API — Admin product gallery routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db import catalog_ops, image_ops
from storefront.db.database import get_db
from storefront.schemas.catalog import ImageCreate, ImageOut, ImageReorder, ImageUpdate
from storefront.schemas.common import OPERATION_SUCCESS, ApiResponse

router = APIRouter(prefix="/api/admin/products/{product_id}/images", tags=["admin-images"])


@router.get("", response_model=ApiResponse[list[ImageOut]])
async def list_images(product_id: int, db: AsyncSession = Depends(get_db)):
    await catalog_ops.get_product(db, product_id, active_only=False)
    images = await image_ops.list_images(db, product_id)
    return ApiResponse[list[ImageOut]](message=OPERATION_SUCCESS, data=[ImageOut.model_validate(i) for i in images])


@router.post("", response_model=ApiResponse[ImageOut], status_code=status.HTTP_201_CREATED)
async def add_image(product_id: int, payload: ImageCreate, db: AsyncSession = Depends(get_db)):
    image = await image_ops.add_image(db, product_id, payload.model_dump())
    return ApiResponse[ImageOut](message="Image added successfully", data=ImageOut.model_validate(image))


# Must be registered before /{image_id}
@router.put("/reorder", response_model=ApiResponse[list[ImageOut]])
async def reorder_images(product_id: int, payload: ImageReorder, db: AsyncSession = Depends(get_db)):
    images = await image_ops.reorder_images(db, product_id, payload.image_ids)
    return ApiResponse[list[ImageOut]](
        message="Images reordered successfully", data=[ImageOut.model_validate(i) for i in images]
    )


@router.put("/{image_id}", response_model=ApiResponse[ImageOut])
async def update_image(
    product_id: int, image_id: int, payload: ImageUpdate, db: AsyncSession = Depends(get_db)
):
    image = await image_ops.update_image(db, product_id, image_id, payload.model_dump(exclude_unset=True))
    return ApiResponse[ImageOut](message="Image updated successfully", data=ImageOut.model_validate(image))


@router.delete("/{image_id}", response_model=ApiResponse[None])
async def delete_image(product_id: int, image_id: int, db: AsyncSession = Depends(get_db)):
    await image_ops.delete_image(db, product_id, image_id)
    return ApiResponse[None](message="Image deleted successfully")
