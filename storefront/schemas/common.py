"""
Storefront API — Response envelope and shared schema base
"""
import math
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
CATEGORY_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None
    error: str | None = None
    timestamp: datetime = Field(default_factory=_utc_now)


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)


class PaginatedResponse(ApiResponse[list[T]], Generic[T]):
    pagination: Pagination


def error_body(message: str, error: str | None = None, data: Any = None) -> dict[str, Any]:
    """Failure envelope as a JSON-ready dict, for handlers and middleware."""
    return ApiResponse[Any](success=False, message=message, error=error, data=data).model_dump(
        mode="json", by_alias=True
    )


OPERATION_SUCCESS = "Operation completed successfully"
