"""Product router: /api/products/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.dependencies import Principal, require_admin
from olimpo.auth.schemas import MessageResponse
from olimpo.database import get_session
from olimpo.products import service
from olimpo.products.schemas import ProductCategory, ProductCreate, ProductResponse, ProductUpdate

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.post("", response_model=ProductResponse, status_code=201)
async def create(
    body: ProductCreate,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProductResponse:
    product = await service.create_product(db, body)
    await db.commit()
    return ProductResponse.model_validate(product)


@router.get("", response_model=list[ProductResponse])
async def find_available(
    category: ProductCategory | None = Query(None),
    db: AsyncSession = Depends(get_session),
) -> list[ProductResponse]:
    """Public catalogue: available products only."""
    products = await service.list_products(db, category, only_available=True)
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/all", response_model=list[ProductResponse])
async def find_all(
    category: ProductCategory | None = Query(None),
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[ProductResponse]:
    return [ProductResponse.model_validate(p) for p in await service.list_products(db, category)]


@router.get("/categories", response_model=list[str])
async def categories() -> list[str]:
    return service.list_categories()


@router.get("/category/{category}", response_model=list[ProductResponse])
async def find_by_category(
    category: ProductCategory,
    db: AsyncSession = Depends(get_session),
) -> list[ProductResponse]:
    products = await service.list_products(db, category, only_available=True)
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/slug/{slug}", response_model=ProductResponse)
async def find_by_slug(slug: str, db: AsyncSession = Depends(get_session)) -> ProductResponse:
    return ProductResponse.model_validate(await service.get_product_by_slug(db, slug))


@router.get("/{product_id}", response_model=ProductResponse)
async def find_one(product_id: str, db: AsyncSession = Depends(get_session)) -> ProductResponse:
    return ProductResponse.model_validate(await service.get_product(db, product_id))


@router.patch("/{product_id}", response_model=ProductResponse)
async def update(
    product_id: str,
    body: ProductUpdate,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProductResponse:
    product = await service.update_product(db, product_id, body)
    await db.commit()
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", response_model=MessageResponse)
async def remove(
    product_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await service.delete_product(db, product_id)
    await db.commit()
    return MessageResponse(message="Producto eliminado correctamente")


@router.post("/{product_id}/toggle-availability", response_model=ProductResponse)
async def toggle_availability(
    product_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProductResponse:
    product = await service.toggle_availability(db, product_id)
    await db.commit()
    return ProductResponse.model_validate(product)
