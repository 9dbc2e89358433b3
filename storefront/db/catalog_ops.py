"""
Storefront API — Catalog operations

Products, categories and variants. Every function takes the request's
AsyncSession as its first argument; writes commit before returning.
"""
import logging
import re
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import (
    CategoryNotFound,
    Conflict,
    InvalidRequest,
    ProductNotFound,
    VariantNotFound,
)
from storefront.models.catalog import Category, Product, ProductStatus, ProductVariant

logger = logging.getLogger(__name__)

PRODUCT_LOAD_OPTIONS = (
    selectinload(Product.category),
    selectinload(Product.images),
    selectinload(Product.variants),
)


def assign(instance: Any, changes: dict[str, Any]) -> None:
    """Apply a partial update. An explicit null only clears nullable columns."""
    columns = instance.__table__.c
    for field, value in changes.items():
        if value is None and not columns[field].nullable:
            continue
        setattr(instance, field, value)


# ─── Stock status ─────────────────────────────────────────────────────────────

def derive_status(product_quantity: int, variant_quantities: list[int]) -> ProductStatus:
    """A product is sellable while any of its stock pools holds a unit."""
    if product_quantity > 0 or any(q > 0 for q in variant_quantities):
        return ProductStatus.AVAILABLE
    return ProductStatus.SOLD_OUT


async def refresh_product_status(db: AsyncSession, product_id: int) -> ProductStatus:
    """Recompute and store Product.status. Does not commit."""
    product_quantity = await db.scalar(select(Product.quantity).where(Product.id == product_id))
    if product_quantity is None:
        raise ProductNotFound(f"Product {product_id} not found")
    variant_quantities = (
        await db.scalars(
            select(ProductVariant.quantity).where(
                ProductVariant.product_id == product_id,
                ProductVariant.is_active.is_(True),
            )
        )
    ).all()
    new_status = derive_status(product_quantity, list(variant_quantities))
    await db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    return new_status


# ─── Products ─────────────────────────────────────────────────────────────────

def _product_filters(
    stmt: Select,
    *,
    include_inactive: bool = False,
    category_id: int | None = None,
    category_slug: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    search: str | None = None,
    status: ProductStatus | None = None,
) -> Select:
    if not include_inactive:
        stmt = stmt.where(Product.is_active.is_(True))
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)
    if category_slug:
        stmt = stmt.join(Category, Product.category_id == Category.id).where(
            Category.slug == category_slug, Category.is_active.is_(True)
        )
    if min_price is not None:
        stmt = stmt.where(Product.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Product.price <= max_price)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if status is not None:
        stmt = stmt.where(Product.status == status)
    return stmt


async def list_products(
    db: AsyncSession, page: int, limit: int, **filters: Any
) -> tuple[list[Product], int]:
    base = _product_filters(select(Product), **filters)
    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.options(*PRODUCT_LOAD_OPTIONS)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def list_product_summaries(db: AsyncSession) -> list[Product]:
    result = await db.execute(
        select(Product).where(Product.is_active.is_(True)).order_by(Product.name.asc())
    )
    return list(result.scalars().all())


async def get_product(db: AsyncSession, product_id: int, *, active_only: bool = True) -> Product:
    stmt = (
        select(Product)
        .where(Product.id == product_id)
        .options(*PRODUCT_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    if active_only:
        stmt = stmt.where(Product.is_active.is_(True))
    product = (await db.execute(stmt)).scalar_one_or_none()
    if product is None:
        raise ProductNotFound("Product not found or inactive" if active_only else "Product not found")
    return product


async def _ensure_category(db: AsyncSession, category_id: int | None) -> None:
    if category_id is None:
        return
    exists = await db.scalar(
        select(Category.id).where(Category.id == category_id, Category.is_active.is_(True))
    )
    if exists is None:
        raise InvalidRequest(f"Category {category_id} does not exist or is inactive")


async def create_product(db: AsyncSession, data: dict[str, Any]) -> Product:
    await _ensure_category(db, data.get("category_id"))
    product = Product(**data)
    product.status = derive_status(product.quantity or 0, [])
    db.add(product)
    await db.commit()
    logger.info("Product created: id=%s name=%r qty=%s", product.id, product.name, product.quantity)
    return await get_product(db, product.id, active_only=False)


async def update_product(db: AsyncSession, product_id: int, changes: dict[str, Any]) -> Product:
    product = await get_product(db, product_id, active_only=False)
    if "category_id" in changes:
        await _ensure_category(db, changes["category_id"])
    assign(product, changes)
    await db.flush()
    await refresh_product_status(db, product.id)
    await db.commit()
    return await get_product(db, product.id, active_only=False)


async def deactivate_product(db: AsyncSession, product_id: int) -> None:
    product = await get_product(db, product_id, active_only=False)
    product.is_active = False
    await db.commit()
    logger.info("Product soft-deleted: id=%s", product_id)


# ─── Variants ─────────────────────────────────────────────────────────────────

def build_sku(product_name: str, color: str, size: str) -> str:
    """NAME-COLOR-SIZE, upper-cased, whitespace runs collapsed to '-'."""
    return "-".join(re.sub(r"\s+", "-", part.strip().upper()) for part in (product_name, color, size))


async def _select_variant(
    db: AsyncSession, product_id: int, color: str, size: str
) -> ProductVariant | None:
    # Case-insensitive: "red"/"M" and "Red"/"M" share one SKU
    result = await db.execute(
        select(ProductVariant)
        .where(
            ProductVariant.product_id == product_id,
            func.lower(ProductVariant.color) == color.lower(),
            func.lower(ProductVariant.size) == size.lower(),
        )
        .order_by(ProductVariant.id)
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def find_or_create_variant(
    db: AsyncSession, product: Product, color: str, size: str
) -> ProductVariant:
    """
    Return the variant for (product, color, size), creating it with zero
    stock when the pair has never been seen.

    This is a write with its own commit, even though it runs while an order
    is only being validated. The insert runs in a savepoint: a concurrent
    creator loses on the unique constraint, only the insert is rolled back,
    and the winner's row is re-read. Everything else the caller loaded in
    the session stays usable. The returned variant may be inactive; callers
    treat an inactive variant as having no stock.
    """
    variant = await _select_variant(db, product.id, color, size)
    if variant is not None:
        return variant

    sku = build_sku(product.name, color, size)
    variant = ProductVariant(
        product_id=product.id,
        color=color,
        size=size,
        quantity=0,
        sku=sku,
        is_active=True,
    )
    try:
        async with db.begin_nested():
            db.add(variant)
    except IntegrityError:
        winner = await _select_variant(db, product.id, color, size)
        if winner is None:
            # SKU taken by another product whose name normalises the same way
            logger.warning("Variant for product %s not created, SKU %s is taken", product.id, sku)
            raise InvalidRequest(
                f"Variant {color} {size} of \"{product.name}\" cannot be created: SKU {sku} is already taken"
            )
        return winner

    await db.commit()
    logger.info("Variant auto-created: product=%s sku=%s", product.id, variant.sku)
    return variant


async def list_variants(db: AsyncSession, product_id: int) -> list[ProductVariant]:
    await get_product(db, product_id, active_only=False)
    result = await db.execute(
        select(ProductVariant)
        .where(ProductVariant.product_id == product_id)
        .order_by(ProductVariant.color, ProductVariant.size, ProductVariant.id)
    )
    return list(result.scalars().all())


async def create_variant(db: AsyncSession, product_id: int, data: dict[str, Any]) -> ProductVariant:
    product = await get_product(db, product_id, active_only=False)
    sku = data.get("sku") or build_sku(product.name, data["color"], data["size"])
    variant = ProductVariant(
        product_id=product.id,
        color=data["color"],
        size=data["size"],
        quantity=data.get("quantity", 0),
        sku=sku,
        is_active=True,
    )
    db.add(variant)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise Conflict("A variant with this colour/size or SKU already exists")
    await refresh_product_status(db, product.id)
    await db.commit()
    return variant


async def update_variant(
    db: AsyncSession, product_id: int, variant_id: int, changes: dict[str, Any]
) -> ProductVariant:
    variant = (
        await db.execute(
            select(ProductVariant).where(
                ProductVariant.id == variant_id, ProductVariant.product_id == product_id
            )
        )
    ).scalar_one_or_none()
    if variant is None:
        raise VariantNotFound("Variant not found or does not belong to this product")
    assign(variant, changes)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise Conflict("A variant with this SKU already exists")
    await refresh_product_status(db, product_id)
    await db.commit()
    await db.refresh(variant)
    return variant


# ─── Categories ───────────────────────────────────────────────────────────────

def _active_categories() -> Select:
    return select(Category).where(Category.is_active.is_(True))


async def list_categories(db: AsyncSession, page: int, limit: int) -> tuple[list[Category], int]:
    total = await db.scalar(select(func.count()).select_from(_active_categories().subquery()))
    result = await db.execute(
        _active_categories()
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def category_summaries(db: AsyncSession) -> list[tuple[Category, int]]:
    """Active categories with their number of active products."""
    product_count = (
        select(func.count(Product.id))
        .where(Product.category_id == Category.id, Product.is_active.is_(True))
        .correlate(Category)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Category, product_count)
        .where(Category.is_active.is_(True))
        .order_by(Category.sort_order.asc(), Category.name.asc())
    )
    return [(category, count) for category, count in result.all()]


async def get_category(db: AsyncSession, category_id: int, *, active_only: bool = True) -> Category:
    stmt = select(Category).where(Category.id == category_id)
    if active_only:
        stmt = stmt.where(Category.is_active.is_(True))
    category = (await db.execute(stmt)).scalar_one_or_none()
    if category is None:
        raise CategoryNotFound("Category not found or inactive")
    return category


async def get_category_by_slug(db: AsyncSession, slug: str) -> Category:
    category = (
        await db.execute(_active_categories().where(Category.slug == slug))
    ).scalar_one_or_none()
    if category is None:
        raise CategoryNotFound("Category not found or inactive")
    return category


async def create_category(db: AsyncSession, data: dict[str, Any]) -> Category:
    category = Category(**data)
    db.add(category)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict(f"Category slug '{data.get('slug')}' already exists")
    return category


async def update_category(db: AsyncSession, category_id: int, changes: dict[str, Any]) -> Category:
    category = await get_category(db, category_id, active_only=False)
    assign(category, changes)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict(f"Category slug '{changes.get('slug')}' already exists")
    await db.refresh(category)
    return category


async def deactivate_category(db: AsyncSession, category_id: int) -> None:
    category = await get_category(db, category_id, active_only=False)
    category.is_active = False
    await db.commit()
