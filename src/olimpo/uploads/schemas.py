"""Response schema for uploads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class UploadResponse(BaseModel):
    url: str
    public_id: str | None = None
    format: str | None = None
    width: int | None = None
    height: int | None = None
    originalname: str
    size: int
    mimetype: str
    storage: Literal["cloudinary", "local"]
