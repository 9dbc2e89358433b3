"""Row builders and payload helpers shared by the test modules."""
from decimal import Decimal

from sqlalchemy import select

from storefront.db.catalog_ops import build_sku, derive_status
from storefront.models.catalog import Category, Product, ProductVariant


async def make_category(session, name: str = "Shirts", slug: str = "shirts") -> Category:
    category = Category(name=name, slug=slug)
    session.add(category)
    await session.commit()
    return category


async def make_product(
    session,
    name: str = "Basic Tee",
    price: str = "10.00",
    quantity: int = 10,
    variants: list[tuple[str, str, int]] | None = None,
    category_id: int | None = None,
    is_active: bool = True,
) -> Product:
    variants = variants or []
    product = Product(
        name=name,
        description=f"{name} description",
        price=Decimal(price),
        quantity=quantity,
        category_id=category_id,
        colors=sorted({color for color, _, _ in variants}),
        sizes=sorted({size for _, size, _ in variants}),
        status=derive_status(quantity, [qty for _, _, qty in variants]),
        is_active=is_active,
        variants=[
            ProductVariant(color=color, size=size, quantity=qty, sku=build_sku(name, color, size))
            for color, size, qty in variants
        ],
    )
    session.add(product)
    await session.commit()
    return product


def order_payload(*items: dict, **overrides) -> dict:
    payload = {
        "customerName": "Jane Doe",
        "customerEmail": "jane@example.com",
        "customerPhone": "+1 555 0100",
        "deliveryAddress": "1 Main Street, Springfield",
        "items": list(items),
    }
    payload.update(overrides)
    return payload


async def read_quantity(sessions, model, row_id: int) -> int:
    async with sessions() as session:
        return await session.scalar(select(model.quantity).where(model.id == row_id))
