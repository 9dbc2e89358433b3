"""
Storefront API — Redis client factory

The client is built once in the application lifespan and kept on
app.state.redis; handlers and middleware reach it through the request.
"""
import redis.asyncio as aioredis
from starlette.requests import HTTPConnection

from storefront.core.config import Settings


def create_redis(settings: Settings) -> aioredis.Redis:
    return aioredis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
    )


async def close_redis(client: aioredis.Redis) -> None:
    await client.aclose()


def get_redis(conn: HTTPConnection) -> aioredis.Redis:
    return conn.app.state.redis
