"""
Storefront API — Sliding window rate limiter middleware (Redis-backed)

Limits POST /api/auth/login to RATE_LIMIT_MAX_ATTEMPTS per
RATE_LIMIT_WINDOW_SECONDS per username. Uses a sorted set per key
(ZREMRANGEBYSCORE/ZCARD/ZADD) for a true sliding window.
"""
import json
import logging
import time
import uuid

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.redis_client import get_redis
from storefront.schemas.common import error_body

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "ratelimit:login:"
LOGIN_PATHS = ("/api/auth/login", "/api/auth/login/")


def _tracking_key(request: Request, body: bytes) -> str:
    """Username from the body; the client address when it cannot be parsed."""
    fallback = request.client.host if request.client else "unknown"
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return fallback
    username = data.get("username") if isinstance(data, dict) else None
    if isinstance(username, str) and username.strip():
        return username.strip().lower()
    return fallback


class SlidingWindowRateLimiter(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next) -> Response:
        settings = request.app.state.settings
        if (
            not settings.RATE_LIMIT_ENABLED
            or request.method != "POST"
            or request.url.path not in LOGIN_PATHS
        ):
            return await call_next(request)

        # Starlette caches the body, so the route can still read it
        body = await request.body()
        key = f"{RATE_LIMIT_PREFIX}{_tracking_key(request, body)}"
        now = time.time()
        window = settings.RATE_LIMIT_WINDOW_SECONDS

        pipe = get_redis(request).pipeline()
        # Remove entries outside the window
        pipe.zremrangebyscore(key, "-inf", now - window)
        # Count attempts still in the window
        pipe.zcard(key)
        # Record this attempt
        pipe.zadd(key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
        pipe.expire(key, window + 1)
        results = await pipe.execute()

        attempt_count = results[1]  # before this attempt
        if attempt_count >= settings.RATE_LIMIT_MAX_ATTEMPTS:
            logger.warning("Login rate limit hit for %s", key)
            return JSONResponse(
                status_code=429,
                content=error_body(
                    "Too many login attempts",
                    f"Maximum {settings.RATE_LIMIT_MAX_ATTEMPTS} attempts per "
                    f"{window} seconds. Try again later.",
                ),
                headers={"Retry-After": str(window)},
            )

        return await call_next(request)
