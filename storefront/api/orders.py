"""
Storefront API — Checkout route
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db import order_ops
from storefront.db.database import get_db
from storefront.schemas.common import ApiResponse
from storefront.schemas.order import OrderCreate, OrderOut

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=ApiResponse[OrderOut], status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreate, request: Request, db: AsyncSession = Depends(get_db)):
    """
    Place an order. Prices are snapshotted from the catalog and stock is
    checked per line; stock is only deducted once the order is paid.
    """
    order = await order_ops.create_order(
        db, payload, prefix=request.app.state.settings.ORDER_NUMBER_PREFIX
    )
    return ApiResponse[OrderOut](
        message="Order created successfully",
        data=OrderOut.model_validate(order),
    )
