"""Request/response schemas for blog endpoints."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, HttpUrl


class PostStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class PostCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=100)
    content: str = Field(..., min_length=10)
    featured_image: HttpUrl | None = None
    tags: list[str] = Field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT


class PostUpdate(BaseModel):
    title: str | None = Field(None, min_length=5, max_length=100)
    content: str | None = Field(None, min_length=10)
    featured_image: HttpUrl | None = None
    tags: list[str] | None = None
    status: PostStatus | None = None


class PostResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    author_id: str | None = None
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    featured_image: str | None = None
    tags: list[str] = []
    status: PostStatus
    views: int = 0
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
