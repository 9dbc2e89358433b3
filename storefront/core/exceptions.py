"""
Storefront API — Error taxonomy

Operation functions raise these; the handlers in storefront.core.handlers
turn them into the response envelope at the HTTP edge.
"""
from fastapi import status


class StorefrontError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, error: str | None = None, *, message: str | None = None,
                 status_code: int | None = None):
        self.error = error or self.message
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.error)


class InvalidRequest(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation error"


class NotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class ProductNotFound(NotFound):
    message = "Product not found"


class OrderNotFound(NotFound):
    message = "Order not found"


class CategoryNotFound(NotFound):
    message = "Category not found"


class ImageNotFound(NotFound):
    message = "Image not found"


class VariantNotFound(NotFound):
    message = "Variant not found"


class InsufficientInventory(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Insufficient inventory"

    def __init__(self, product_name: str, available: int, requested: int,
                 color: str | None = None, size: str | None = None):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        self.color = color
        self.size = size
        if color and size:
            error = (
                f'Product "{product_name}" in {color} {size} only has {available} '
                f"units available, but {requested} were requested"
            )
        else:
            error = (
                f'Product "{product_name}" only has {available} units available, '
                f"but {requested} were requested"
            )
        super().__init__(error)


class Conflict(StorefrontError):
    status_code = status.HTTP_409_CONFLICT
    message = "Duplicate entry"


class OrderNumberConflict(Conflict):
    """Generated order number collided with an existing one."""


class Unauthorized(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized access"


class InvalidCredentials(Unauthorized):
    message = "Invalid username or password"


class InvalidToken(Unauthorized):
    message = "Invalid or expired token"


class InternalError(StorefrontError):
    pass
