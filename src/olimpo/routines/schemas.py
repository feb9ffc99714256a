"""Schemas for member training routines."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class RoutineRequest(BaseModel):
    routine: list[Any] = Field(default_factory=list)
    has_routine: bool = True


class RoutineResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    user_id: str
    routine: list[Any]
    has_routine: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
