from storefront.models.user import User
from storefront.models.catalog import Category, Product, ProductImage, ProductStatus, ProductVariant
from storefront.models.order import Order, OrderItem, OrderStatus

__all__ = [
    "User",
    "Category",
    "Product",
    "ProductImage",
    "ProductStatus",
    "ProductVariant",
    "Order",
    "OrderItem",
    "OrderStatus",
]
