"""
Storefront API — Product gallery operations

Keeps the primary-image invariant: among a product's active images at
most one has is_primary set. Every flag change happens in the same
transaction as the write that caused it.
"""
import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import ImageNotFound, InvalidRequest
from storefront.db.catalog_ops import assign, get_product
from storefront.models.catalog import ProductImage

logger = logging.getLogger(__name__)

GALLERY_ORDER = (ProductImage.sort_order.asc(), ProductImage.created_at.asc(), ProductImage.id.asc())


def pick_primary(images: list[ProductImage]) -> ProductImage | None:
    """The flagged image, else the first one in gallery order."""
    for image in images:
        if image.is_primary:
            return image
    return images[0] if images else None


async def list_images(db: AsyncSession, product_id: int) -> list[ProductImage]:
    result = await db.execute(
        select(ProductImage)
        .where(ProductImage.product_id == product_id, ProductImage.is_active.is_(True))
        .order_by(*GALLERY_ORDER)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _get_image(db: AsyncSession, product_id: int, image_id: int) -> ProductImage:
    image = (
        await db.execute(
            select(ProductImage).where(
                ProductImage.id == image_id, ProductImage.product_id == product_id
            )
        )
    ).scalar_one_or_none()
    if image is None:
        raise ImageNotFound("Image not found or does not belong to this product")
    return image


async def _clear_primary(db: AsyncSession, product_id: int, keep_id: int | None = None) -> None:
    stmt = update(ProductImage).where(
        ProductImage.product_id == product_id, ProductImage.is_primary.is_(True)
    )
    if keep_id is not None:
        stmt = stmt.where(ProductImage.id != keep_id)
    await db.execute(stmt.values(is_primary=False).execution_options(synchronize_session="fetch"))


async def _promote_next(db: AsyncSession, product_id: int, leaving_id: int) -> ProductImage | None:
    result = await db.execute(
        select(ProductImage)
        .where(
            ProductImage.product_id == product_id,
            ProductImage.is_active.is_(True),
            ProductImage.id != leaving_id,
        )
        .order_by(*GALLERY_ORDER)
        .limit(1)
    )
    successor = result.scalar_one_or_none()
    if successor is not None:
        successor.is_primary = True
        logger.info("Image %s promoted to primary for product %s", successor.id, product_id)
    return successor


async def _has_active_images(db: AsyncSession, product_id: int, excluding: int | None = None) -> bool:
    stmt = select(ProductImage.id).where(
        ProductImage.product_id == product_id, ProductImage.is_active.is_(True)
    )
    if excluding is not None:
        stmt = stmt.where(ProductImage.id != excluding)
    return (await db.execute(stmt.limit(1))).first() is not None


async def add_image(db: AsyncSession, product_id: int, data: dict[str, Any]) -> ProductImage:
    await get_product(db, product_id, active_only=False)
    # The first image of a gallery is always primary
    make_primary = data.get("is_primary", False) or not await _has_active_images(db, product_id)
    if make_primary:
        await _clear_primary(db, product_id)
    image = ProductImage(
        product_id=product_id,
        image_url=data["image_url"],
        alt_text=data.get("alt_text"),
        sort_order=data.get("sort_order", 0),
        is_primary=make_primary,
        is_active=True,
    )
    db.add(image)
    await db.commit()
    return image


async def update_image(
    db: AsyncSession, product_id: int, image_id: int, changes: dict[str, Any]
) -> ProductImage:
    image = await _get_image(db, product_id, image_id)

    deactivating = changes.get("is_active") is False and image.is_active
    reactivating = changes.get("is_active") is True and not image.is_active

    assign(image, changes)

    if deactivating:
        if image.is_primary:
            await _promote_next(db, product_id, image.id)
        image.is_primary = False
    elif image.is_primary and image.is_active:
        await _clear_primary(db, product_id, keep_id=image.id)
    elif reactivating and not await _has_active_images(db, product_id, excluding=image.id):
        image.is_primary = True

    if not image.is_active:
        image.is_primary = False

    await db.commit()
    await db.refresh(image)
    return image


async def delete_image(db: AsyncSession, product_id: int, image_id: int) -> None:
    """Soft delete; a deleted primary hands the flag to the next image."""
    image = await _get_image(db, product_id, image_id)
    if not image.is_active:
        raise ImageNotFound("Image already deleted")
    if image.is_primary:
        await _promote_next(db, product_id, image.id)
    image.is_active = False
    image.is_primary = False
    await db.commit()


async def reorder_images(db: AsyncSession, product_id: int, image_ids: list[int]) -> list[ProductImage]:
    await get_product(db, product_id, active_only=False)
    if len(set(image_ids)) != len(image_ids):
        raise InvalidRequest("Image IDs must be unique", message="Invalid image IDs")
    images = await list_images(db, product_id)
    by_id = {image.id: image for image in images}
    if any(image_id not in by_id for image_id in image_ids):
        raise InvalidRequest(
            "Some images do not belong to this product or are inactive", message="Invalid image IDs"
        )
    for index, image_id in enumerate(image_ids):
        by_id[image_id].sort_order = index
    await db.commit()
    return await list_images(db, product_id)
