"""
Storefront API — Admin dashboard schemas
"""
from storefront.schemas.catalog import Money
from storefront.schemas.common import CamelModel
from storefront.schemas.order import OrderSummaryOut


class DashboardStatistics(CamelModel):
    total_orders: int
    new_orders: int
    paid_orders: int
    ready_orders: int
    total_revenue: Money
    total_products: int
    active_products: int
    sold_out_products: int


class DashboardOut(CamelModel):
    statistics: DashboardStatistics
    recent_orders: list[OrderSummaryOut]
