"""
Storefront API — Admin order routes and dashboard
All routes sit behind JWTAuthMiddleware.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db import dashboard_ops, order_ops
from storefront.db.database import get_db
from storefront.models.order import OrderStatus
from storefront.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    OPERATION_SUCCESS,
    ApiResponse,
    PaginatedResponse,
    Pagination,
)
from storefront.schemas.dashboard import DashboardOut, DashboardStatistics
from storefront.schemas.order import OrderOut, OrderStatusUpdate, OrderSummaryOut

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/orders", response_model=PaginatedResponse[OrderSummaryOut])
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: OrderStatus | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await order_ops.list_orders(db, page, limit, status=status)
    return PaginatedResponse[OrderSummaryOut](
        message=OPERATION_SUCCESS,
        data=[OrderSummaryOut.model_validate(o) for o in orders],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/orders/{order_id}", response_model=ApiResponse[OrderOut])
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    order = await order_ops.get_order(db, order_id)
    return ApiResponse[OrderOut](message=OPERATION_SUCCESS, data=OrderOut.model_validate(order))


@router.put("/orders/{order_id}/status", response_model=ApiResponse[OrderOut])
async def update_order_status(
    order_id: int, payload: OrderStatusUpdate, db: AsyncSession = Depends(get_db)
):
    """Set the order status; the first move to paid deducts stock."""
    order = await order_ops.update_order_status(db, order_id, payload.status)
    return ApiResponse[OrderOut](
        message="Order status updated successfully",
        data=OrderOut.model_validate(order),
    )


@router.get("/dashboard", response_model=ApiResponse[DashboardOut])
async def dashboard(db: AsyncSession = Depends(get_db)):
    statistics = await dashboard_ops.dashboard_statistics(db)
    recent = await dashboard_ops.recent_orders(db)
    return ApiResponse[DashboardOut](
        message=OPERATION_SUCCESS,
        data=DashboardOut(
            statistics=DashboardStatistics(**statistics),
            recent_orders=[OrderSummaryOut.model_validate(o) for o in recent],
        ),
    )
