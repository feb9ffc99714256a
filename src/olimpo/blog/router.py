"""Blog router: /api/blog/* endpoints. Reads are public, writes are admin-only."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.dependencies import Principal, require_admin
from olimpo.auth.schemas import MessageResponse
from olimpo.blog import service
from olimpo.blog.schemas import PostCreate, PostResponse, PostStatus, PostUpdate
from olimpo.database import get_session

router = APIRouter(prefix="/api/blog", tags=["Blog"])


@router.post("", response_model=PostResponse, status_code=201)
async def create(
    body: PostCreate,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    post = await service.create_post(db, body, author_id=admin.id)
    await db.commit()
    return PostResponse.model_validate(post)


@router.get("", response_model=list[PostResponse])
async def find_published(db: AsyncSession = Depends(get_session)) -> list[PostResponse]:
    return [PostResponse.model_validate(p) for p in await service.list_published(db)]


@router.get("/all", response_model=list[PostResponse])
async def find_all(
    status: PostStatus | None = Query(None),
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[PostResponse]:
    """Every post, optionally filtered by status."""
    return [PostResponse.model_validate(p) for p in await service.list_posts(db, status)]


@router.get("/tags", response_model=list[str])
async def tags(db: AsyncSession = Depends(get_session)) -> list[str]:
    return await service.list_tags(db)


@router.get("/tag/{tag}", response_model=list[PostResponse])
async def find_by_tag(tag: str, db: AsyncSession = Depends(get_session)) -> list[PostResponse]:
    return [PostResponse.model_validate(p) for p in await service.list_by_tag(db, tag)]


@router.get("/slug/{slug}", response_model=PostResponse)
async def find_by_slug(slug: str, db: AsyncSession = Depends(get_session)) -> PostResponse:
    post = await service.get_post_by_slug(db, slug)
    await db.commit()
    return PostResponse.model_validate(post)


@router.get("/{post_id}", response_model=PostResponse)
async def find_one(post_id: str, db: AsyncSession = Depends(get_session)) -> PostResponse:
    return PostResponse.model_validate(await service.get_post(db, post_id))


@router.patch("/{post_id}", response_model=PostResponse)
async def update(
    post_id: str,
    body: PostUpdate,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    post = await service.update_post(db, post_id, body)
    await db.commit()
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def remove(
    post_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await service.delete_post(db, post_id)
    await db.commit()
    return MessageResponse(message="Post eliminado correctamente")


@router.post("/{post_id}/publish", response_model=PostResponse)
async def publish(
    post_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    post = await service.publish_post(db, post_id)
    await db.commit()
    return PostResponse.model_validate(post)


@router.post("/{post_id}/unpublish", response_model=PostResponse)
async def unpublish(
    post_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    post = await service.unpublish_post(db, post_id)
    await db.commit()
    return PostResponse.model_validate(post)
