"""
Storefront API — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from storefront.api import admin, admin_catalog, auth, categories, health, images, orders, products
from storefront.core.config import Settings, get_settings
from storefront.core.handlers import register_exception_handlers
from storefront.core.logging import configure_logging
from storefront.core.redis_client import close_redis, create_redis
from storefront.db.database import build_engine, build_sessionmaker, create_tables
from storefront.middleware.auth import JWTAuthMiddleware
from storefront.middleware.rate_limiter import SlidingWindowRateLimiter
from storefront.middleware.request_logging import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, redis_client: aioredis.Redis | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        engine = build_engine(settings)
        if settings.DB_CREATE_TABLES:
            await create_tables(engine)
        app.state.engine = engine
        app.state.sessionmaker = build_sessionmaker(engine)
        app.state.redis = redis_client if redis_client is not None else create_redis(settings)
        logger.info("%s %s started", settings.SERVICE_NAME, settings.SERVICE_VERSION)
        yield
        # Only close what we opened
        if redis_client is None:
            await close_redis(app.state.redis)
        await engine.dispose()

    app = FastAPI(
        title="Storefront API",
        description="Catalog, checkout and order administration for a small online shop.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )
    # Read by middleware and routes through request.app.state
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Last added runs outermost
    app.add_middleware(SlidingWindowRateLimiter)
    app.add_middleware(JWTAuthMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    for module in (products, categories, orders, auth, admin, admin_catalog, images, health):
        app.include_router(module.router)

    @app.get("/")
    async def root():
        return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}

    return app


app = create_app()
