"""Product catalogue."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from olimpo.common.slugs import unique_slug
from olimpo.db.models import Product
from olimpo.errors import NotFound
from olimpo.products.schemas import ProductCategory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from olimpo.products.schemas import ProductCreate, ProductUpdate

logger = structlog.get_logger()


def _require(product: Product | None) -> Product:
    if product is None:
        msg = "Producto no encontrado"
        raise NotFound(msg)
    return product


def list_categories() -> list[str]:
    return [category.value for category in ProductCategory]


async def create_product(db: AsyncSession, body: ProductCreate) -> Product:
    product = Product(
        name=body.name,
        slug=await unique_slug(db, Product.slug, body.name),
        description=body.description,
        price=body.price,
        image=str(body.image) if body.image else None,
        category=body.category.value,
        available=body.available,
    )
    db.add(product)
    await db.flush()
    logger.info("product_created", product_id=product.id, slug=product.slug)
    return product


async def list_products(
    db: AsyncSession,
    category: ProductCategory | None = None,
    *,
    only_available: bool = False,
) -> list[Product]:
    query = select(Product).order_by(Product.created_at.desc())
    if category is not None:
        query = query.where(Product.category == category.value)
    if only_available:
        query = query.where(Product.available.is_(True))
    return list((await db.execute(query)).scalars().all())


async def get_product(db: AsyncSession, product_id: str) -> Product:
    result = await db.execute(select(Product).where(Product.id == product_id))
    return _require(result.scalar_one_or_none())


async def get_product_by_slug(db: AsyncSession, slug: str) -> Product:
    result = await db.execute(select(Product).where(Product.slug == slug))
    return _require(result.scalar_one_or_none())


async def update_product(db: AsyncSession, product_id: str, body: ProductUpdate) -> Product:
    product = await get_product(db, product_id)
    data = body.model_dump(exclude_unset=True, exclude_none=True)

    if "name" in data and data["name"] != product.name:
        product.slug = await unique_slug(db, Product.slug, data["name"], exclude_id=product.id)
    if "image" in data:
        data["image"] = str(data["image"])
    if "category" in data:
        data["category"] = data["category"].value

    for field, value in data.items():
        setattr(product, field, value)
    await db.flush()
    logger.info("product_updated", product_id=product.id, fields=sorted(data))
    return product


async def delete_product(db: AsyncSession, product_id: str) -> None:
    product = await get_product(db, product_id)
    await db.delete(product)
    await db.flush()
    logger.info("product_deleted", product_id=product_id)


async def toggle_availability(db: AsyncSession, product_id: str) -> Product:
    product = await get_product(db, product_id)
    product.available = not product.available
    await db.flush()
    logger.info("product_availability_toggled", product_id=product.id, available=product.available)
    return product
