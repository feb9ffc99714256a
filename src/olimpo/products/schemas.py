"""Request/response schemas for product endpoints."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, HttpUrl


class ProductCategory(StrEnum):
    SUPPLEMENTS = "supplements"
    EQUIPMENT = "equipment"
    CLOTHING = "clothing"
    ACCESSORIES = "accessories"


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10)
    price: float = Field(..., ge=0)
    image: HttpUrl | None = None
    category: ProductCategory
    available: bool = True


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=10)
    price: float | None = Field(None, ge=0)
    image: HttpUrl | None = None
    category: ProductCategory | None = None
    available: bool | None = None


class ProductResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    name: str
    slug: str
    description: str
    price: float
    image: str | None = None
    category: ProductCategory
    available: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
