"""
Storefront API — Order placement and the paid-transition stock deduction

Stock lives in two kinds of pools: a variant's quantity (lines that carry a
colour/size selection) and a product's own quantity (lines that do not).
The same pool is checked at checkout and debited when the order is paid.

The debit never trusts an earlier read. Each pool is decremented with

    UPDATE ... SET quantity = quantity - :n WHERE id = :id AND quantity >= :n

inside the same transaction that flips the order to PAID, so two
concurrent payments competing for the last units cannot both succeed:
the loser's UPDATE matches zero rows and the whole transaction is rolled
back, order status included.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import (
    InsufficientInventory,
    InternalError,
    OrderNumberConflict,
    OrderNotFound,
    ProductNotFound,
)
from storefront.core.retry import retry_on_order_number_conflict
from storefront.db.catalog_ops import find_or_create_variant, refresh_product_status
from storefront.models.catalog import Product, ProductStatus, ProductVariant
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.schemas.order import OrderCreate

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

ORDER_LOAD_OPTIONS = (
    selectinload(Order.items).selectinload(OrderItem.product),
    selectinload(Order.items).selectinload(OrderItem.product_variant),
)


@dataclass
class StockDemand:
    """Units requested from one pool across all lines of an order."""
    product: Product
    variant: ProductVariant | None
    requested: int = 0

    @property
    def available(self) -> int:
        if self.variant is None:
            return self.product.quantity
        # An inactive variant is a discontinued combination: nothing to sell
        return self.variant.quantity if self.variant.is_active else 0

    def shortfall(self, available: int | None = None) -> InsufficientInventory:
        return InsufficientInventory(
            product_name=self.product.name,
            available=self.available if available is None else available,
            requested=self.requested,
            color=self.variant.color if self.variant else None,
            size=self.variant.size if self.variant else None,
        )


def generate_order_number(prefix: str = "SS") -> str:
    """<prefix>-<epoch millis>-<8 hex chars>. Uniqueness is enforced by the column."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8].upper()}"


def _pool_key(product_id: int, variant_id: int | None) -> tuple[str, int]:
    return ("variant", variant_id) if variant_id is not None else ("product", product_id)


# ─── Reads ────────────────────────────────────────────────────────────────────

async def get_order(db: AsyncSession, order_id: int) -> Order:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(*ORDER_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound("Order not found")
    return order


async def list_orders(
    db: AsyncSession, page: int, limit: int, status: OrderStatus | None = None
) -> tuple[list[Order], int]:
    base = select(Order)
    if status is not None:
        base = base.where(Order.status == status)
    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


# ─── Checkout ─────────────────────────────────────────────────────────────────

@retry_on_order_number_conflict()
async def create_order(db: AsyncSession, payload: OrderCreate, prefix: str = "SS") -> Order:
    """
    Validate every line against the catalog and current stock, then write
    the order and its lines in one transaction. Nothing is written for the
    order unless every line passes.
    """
    product_ids = {line.product_id for line in payload.items}
    result = await db.execute(
        select(Product).where(
            Product.id.in_(product_ids),
            Product.is_active.is_(True),
            Product.status == ProductStatus.AVAILABLE,
        )
    )
    products = {product.id: product for product in result.scalars().all()}
    if len(products) != len(product_ids):
        missing = sorted(product_ids - products.keys())
        logger.warning("Order rejected, unavailable products: %s", missing)
        raise ProductNotFound(
            "One or more products not found, inactive, or sold out",
            status_code=400,
        )

    demands: dict[tuple[str, int], StockDemand] = {}
    lines: list[dict[str, Any]] = []
    total = Decimal("0")

    for line in payload.items:
        product = products[line.product_id]
        variant = None
        if line.selected_color and line.selected_size:
            variant = await find_or_create_variant(
                db, product, line.selected_color, line.selected_size
            )

        key = _pool_key(product.id, variant.id if variant else None)
        demand = demands.setdefault(key, StockDemand(product=product, variant=variant))
        demand.requested += line.quantity
        available = demand.available
        if available < demand.requested:
            logger.warning(
                "Order rejected, insufficient stock: product=%s pool=%s available=%s requested=%s",
                product.id, key, available, demand.requested,
            )
            raise demand.shortfall(available)

        unit_price = Decimal(product.price)
        total += unit_price * line.quantity
        lines.append(
            {
                "product_id": product.id,
                "product_variant_id": variant.id if variant else None,
                "quantity": line.quantity,
                "unit_price": unit_price,
                "selected_color": line.selected_color,
                "selected_size": line.selected_size,
            }
        )

    order_number = generate_order_number(prefix)
    order = Order(
        order_number=order_number,
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        customer_phone=payload.customer_phone,
        delivery_address=payload.delivery_address,
        status=OrderStatus.NEW,
        total_amount=total.quantize(CENTS),
        items=[OrderItem(**line) for line in lines],
    )
    db.add(order)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if "order_number" in str(exc.orig):
            raise OrderNumberConflict(f"Order number {order_number} already exists")
        logger.error("Order insert failed: %s", exc.orig)
        raise InternalError("Could not store the order") from exc

    logger.info(
        "Order created: %s id=%s lines=%d total=%s",
        order.order_number, order.id, len(lines), order.total_amount,
    )
    return await get_order(db, order.id)


# ─── Status transitions ───────────────────────────────────────────────────────

def _demands_for(order: Order) -> dict[tuple[str, int], StockDemand]:
    demands: dict[tuple[str, int], StockDemand] = {}
    for item in order.items:
        key = _pool_key(item.product_id, item.product_variant_id)
        demand = demands.setdefault(
            key, StockDemand(product=item.product, variant=item.product_variant)
        )
        demand.requested += item.quantity
    return demands


async def _debit(db: AsyncSession, demand: StockDemand) -> bool:
    """Conditional decrement of one pool. False when the pool cannot cover it."""
    if demand.variant is not None:
        model, row_id = ProductVariant, demand.variant.id
        conditions = [ProductVariant.is_active.is_(True)]
    else:
        model, row_id = Product, demand.product.id
        conditions = []
    result = await db.execute(
        update(model)
        .where(model.id == row_id, model.quantity >= demand.requested, *conditions)
        .values(quantity=model.quantity - demand.requested)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _current_quantity(db: AsyncSession, demand: StockDemand) -> int:
    if demand.variant is not None:
        stmt = select(ProductVariant.quantity).where(
            ProductVariant.id == demand.variant.id, ProductVariant.is_active.is_(True)
        )
    else:
        stmt = select(Product.quantity).where(Product.id == demand.product.id)
    return (await db.scalar(stmt)) or 0


async def _mark_paid(db: AsyncSession, order: Order) -> None:
    # Plain copies: a rollback expires the ORM instance
    order_id, order_number = order.id, order.order_number
    demands = _demands_for(order)

    # Pre-check on the rows just loaded; under concurrency the conditional
    # UPDATEs below have the final say.
    for demand in demands.values():
        if demand.available < demand.requested:
            logger.warning(
                "Payment of %s rejected: %s has %s, needs %s",
                order_number, demand.product.name, demand.available, demand.requested,
            )
            raise demand.shortfall()

    try:
        claimed = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.stock_deducted.is_(False))
            .values(status=OrderStatus.PAID, stock_deducted=True)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            # A concurrent request paid this order first
            await db.rollback()
            logger.info("Order %s already paid by a concurrent request", order_number)
            return

        for demand in demands.values():
            if not await _debit(db, demand):
                available = await _current_quantity(db, demand)
                logger.warning(
                    "Payment of %s rolled back: %s has %s, needs %s",
                    order_number, demand.product.name, available, demand.requested,
                )
                raise demand.shortfall(available)

        for product_id in {demand.product.id for demand in demands.values()}:
            await refresh_product_status(db, product_id)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Order %s paid, stock deducted: %s",
        order_number,
        ", ".join(f"{kind}:{row_id}-{d.requested}" for (kind, row_id), d in demands.items()),
    )


async def update_order_status(db: AsyncSession, order_id: int, target: OrderStatus) -> Order:
    """
    Move an order to target. The first move into PAID debits every line's
    stock pool; every other move is a plain status write.
    """
    order = await get_order(db, order_id)

    if target == OrderStatus.PAID and not order.stock_deducted:
        await _mark_paid(db, order)
    elif order.status != target:
        await db.execute(
            update(Order)
            .where(Order.id == order.id)
            .values(status=target)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        logger.info("Order %s status: %s -> %s", order.order_number, order.status.value, target.value)

    return await get_order(db, order_id)
