"""Blog posts: drafting, publishing and public reads."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from olimpo.blog.schemas import PostStatus
from olimpo.common.slugs import unique_slug
from olimpo.db.base import utcnow
from olimpo.db.models import Post
from olimpo.errors import NotFound

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from olimpo.blog.schemas import PostCreate, PostUpdate

logger = structlog.get_logger()

EXCERPT_LENGTH = 150


def make_excerpt(content: str) -> str:
    return content[:EXCERPT_LENGTH] + "..."


def _require(post: Post | None) -> Post:
    if post is None:
        msg = "Post no encontrado"
        raise NotFound(msg)
    return post


async def create_post(db: AsyncSession, body: PostCreate, author_id: str | None) -> Post:
    post = Post(
        author_id=author_id,
        title=body.title,
        slug=await unique_slug(db, Post.slug, body.title),
        content=body.content,
        excerpt=make_excerpt(body.content),
        featured_image=str(body.featured_image) if body.featured_image else None,
        tags=list(body.tags),
        status=body.status.value,
        published_at=utcnow() if body.status == PostStatus.PUBLISHED else None,
    )
    db.add(post)
    await db.flush()
    logger.info("post_created", post_id=post.id, slug=post.slug, status=post.status)
    return post


async def list_posts(db: AsyncSession, status: PostStatus | None = None) -> list[Post]:
    query = select(Post).order_by(Post.created_at.desc())
    if status is not None:
        query = query.where(Post.status == status.value)
    return list((await db.execute(query)).scalars().all())


async def list_published(db: AsyncSession) -> list[Post]:
    return await list_posts(db, PostStatus.PUBLISHED)


async def get_post(db: AsyncSession, post_id: str) -> Post:
    result = await db.execute(select(Post).where(Post.id == post_id))
    return _require(result.scalar_one_or_none())


async def get_post_by_slug(db: AsyncSession, slug: str) -> Post:
    """Fetch by slug and count the read."""
    result = await db.execute(select(Post).where(Post.slug == slug))
    post = _require(result.scalar_one_or_none())
    post.views = (post.views or 0) + 1
    await db.flush()
    return post


async def list_by_tag(db: AsyncSession, tag: str) -> list[Post]:
    # Tags are a JSON list; filter in Python so the query stays portable.
    return [post for post in await list_published(db) if tag in (post.tags or [])]


async def list_tags(db: AsyncSession) -> list[str]:
    """Distinct tags across published posts, sorted."""
    tags: set[str] = set()
    for post in await list_published(db):
        tags.update(post.tags or [])
    return sorted(tags)


async def update_post(db: AsyncSession, post_id: str, body: PostUpdate) -> Post:
    """Re-slugs only when the title actually changes; refreshes the excerpt with the content."""
    post = await get_post(db, post_id)
    data = body.model_dump(exclude_unset=True, exclude_none=True)

    if "title" in data and data["title"] != post.title:
        post.slug = await unique_slug(db, Post.slug, data["title"], exclude_id=post.id)
    if "content" in data:
        post.excerpt = make_excerpt(data["content"])
    if "featured_image" in data:
        data["featured_image"] = str(data["featured_image"])
    if "status" in data:
        data["status"] = data["status"].value
        if data["status"] == PostStatus.PUBLISHED and post.published_at is None:
            post.published_at = utcnow()

    for field, value in data.items():
        setattr(post, field, value)
    await db.flush()
    logger.info("post_updated", post_id=post.id, fields=sorted(data))
    return post


async def delete_post(db: AsyncSession, post_id: str) -> None:
    post = await get_post(db, post_id)
    await db.delete(post)
    await db.flush()
    logger.info("post_deleted", post_id=post_id)


async def publish_post(db: AsyncSession, post_id: str) -> Post:
    post = await get_post(db, post_id)
    post.status = PostStatus.PUBLISHED.value
    if post.published_at is None:
        post.published_at = utcnow()
    await db.flush()
    logger.info("post_published", post_id=post.id)
    return post


async def unpublish_post(db: AsyncSession, post_id: str) -> Post:
    post = await get_post(db, post_id)
    post.status = PostStatus.DRAFT.value
    await db.flush()
    logger.info("post_unpublished", post_id=post.id)
    return post
