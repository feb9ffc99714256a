"""URL slugs for posts and products."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from slugify import slugify
from sqlalchemy import select

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute


def make_slug(text: str) -> str:
    """Lowercase ASCII slug with hyphens; accents are transliterated."""
    return slugify(text, lowercase=True)


async def unique_slug(
    db: AsyncSession,
    column: InstrumentedAttribute[Any],
    text: str,
    exclude_id: str | None = None,
) -> str:
    """
    Slug for ``text`` that no other row uses in ``column``.

    On a collision the slug gets a ``-{epoch_ms}`` suffix. ``exclude_id`` skips
    the row being updated.
    """
    slug = make_slug(text)
    model = column.class_
    query = select(model.id).where(column == slug)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    taken = (await db.execute(query.limit(1))).scalar_one_or_none()
    if taken is None:
        return slug
    return f"{slug}-{int(time.time() * 1000)}"
