"""
Storefront API — Seed script

Creates the admin user from settings and a few sample products. Safe to
run repeatedly; existing rows are left alone.

    python -m storefront.db.seed
"""
import asyncio
import logging
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings, get_settings
from storefront.core.logging import configure_logging
from storefront.core.security import hash_password
from storefront.db.catalog_ops import derive_status
from storefront.db.database import build_engine, build_sessionmaker, create_tables
from storefront.models.catalog import Product
from storefront.models.user import User

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    {
        "name": "Sample Product 1",
        "description": "This is a sample product description for testing purposes.",
        "price": Decimal("29.99"),
        "image_url": "https://via.placeholder.com/300x300?text=Product+1",
        "quantity": 25,
    },
    {
        "name": "Sample Product 2",
        "description": "Another sample product with a longer description to test the system.",
        "price": Decimal("49.99"),
        "image_url": "https://via.placeholder.com/300x300?text=Product+2",
        "quantity": 10,
    },
    {
        "name": "Sample Product 3",
        "description": "A third sample product for comprehensive testing.",
        "price": Decimal("19.99"),
        "image_url": "https://via.placeholder.com/300x300?text=Product+3",
        "quantity": 0,
    },
]


async def seed_admin(db: AsyncSession, settings: Settings) -> User:
    existing = (
        await db.execute(
            select(User).where(
                or_(User.username == settings.ADMIN_USERNAME, User.email == settings.ADMIN_EMAIL)
            )
        )
    ).scalar_one_or_none()
    if existing is not None:
        logger.info("Admin user already present: %s", existing.username)
        return existing

    admin = User(
        username=settings.ADMIN_USERNAME,
        email=settings.ADMIN_EMAIL,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        is_active=True,
    )
    db.add(admin)
    await db.commit()
    logger.info("Admin user created: id=%s username=%s", admin.id, admin.username)
    return admin


async def seed_products(db: AsyncSession) -> int:
    created = 0
    for data in SAMPLE_PRODUCTS:
        exists = await db.scalar(select(Product.id).where(Product.name == data["name"]))
        if exists is not None:
            continue
        db.add(Product(**data, status=derive_status(data["quantity"], [])))
        created += 1
    await db.commit()
    logger.info("Sample products created: %d", created)
    return created


async def run(settings: Settings) -> None:
    engine = build_engine(settings)
    try:
        await create_tables(engine)
        async with build_sessionmaker(engine)() as db:
            await seed_admin(db, settings)
            await seed_products(db)
    finally:
        await engine.dispose()


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
