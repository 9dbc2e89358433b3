"""
Storefront API — Admin dashboard aggregates
"""
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.catalog import Product, ProductStatus
from storefront.models.order import Order, OrderStatus

RECENT_ORDERS = 5

# Statuses whose totals count as revenue
REVENUE_STATUSES = (OrderStatus.PAID, OrderStatus.READY_FOR_DELIVERY)


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


async def dashboard_statistics(db: AsyncSession) -> dict[str, Any]:
    orders = (
        await db.execute(
            select(
                func.count(Order.id),
                _count_where(Order.status == OrderStatus.NEW),
                _count_where(Order.status == OrderStatus.PAID),
                _count_where(Order.status == OrderStatus.READY_FOR_DELIVERY),
                func.coalesce(
                    func.sum(case((Order.status.in_(REVENUE_STATUSES), Order.total_amount), else_=0)),
                    0,
                ),
            )
        )
    ).one()
    products = (
        await db.execute(
            select(
                func.count(Product.id),
                _count_where(Product.is_active.is_(True)),
                _count_where(Product.is_active.is_(True) & (Product.status == ProductStatus.SOLD_OUT)),
            )
        )
    ).one()

    total_orders, new_orders, paid_orders, ready_orders, revenue = orders
    total_products, active_products, sold_out_products = products
    return {
        "total_orders": total_orders,
        "new_orders": new_orders,
        "paid_orders": paid_orders,
        "ready_orders": ready_orders,
        "total_revenue": Decimal(str(revenue)).quantize(Decimal("0.01")),
        "total_products": total_products,
        "active_products": active_products,
        "sold_out_products": sold_out_products,
    }


async def recent_orders(db: AsyncSession, limit: int = RECENT_ORDERS) -> list[Order]:
    result = await db.execute(
        select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
