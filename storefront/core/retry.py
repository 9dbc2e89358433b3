"""
Storefront API — Order-number collision retry decorator

Order numbers are timestamp + random suffix, backed by a UNIQUE column.
A collision surfaces as OrderNumberConflict; the decorated operation is
re-run with a fresh number after exponential backoff + jitter.
"""
import asyncio
import random
import functools
import logging

from storefront.core.config import get_settings
from storefront.core.exceptions import OrderNumberConflict

logger = logging.getLogger(__name__)


def retry_on_order_number_conflict(max_retries: int | None = None):
    """
    Decorator for async functions that insert a freshly numbered order.

    Usage:
        @retry_on_order_number_conflict()
        async def create_order(db, ...):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            settings = get_settings()
            _max = max_retries or settings.ORDER_NUMBER_MAX_RETRIES
            for attempt in range(1, _max + 1):
                try:
                    return await func(*args, **kwargs)
                except OrderNumberConflict:
                    if attempt == _max:
                        logger.error(
                            "Order number collision unresolved after %d attempts for %s",
                            _max, func.__name__,
                        )
                        raise
                    base_delay = settings.ORDER_NUMBER_BASE_DELAY_MS / 1000.0
                    max_delay = settings.ORDER_NUMBER_MAX_DELAY_MS / 1000.0
                    jitter = random.uniform(0, settings.ORDER_NUMBER_JITTER_MS / 1000.0)
                    delay = min(base_delay * (2 ** attempt), max_delay) + jitter
                    logger.warning(
                        "Order number collision on attempt %d/%d, retrying in %.3fs",
                        attempt, _max, delay,
                    )
                    await asyncio.sleep(delay)
        return wrapper
    return decorator
