"""Request/response schemas for membership endpoints."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class MembershipType(StrEnum):
    MONTHLY = "monthly"
    KICKBOXING = "kickboxing"
    QUARTERLY = "quarterly"
    BIANNUAL = "biannual"
    ANNUAL = "annual"


class MembershipStatus(StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"
    PENDING = "pending"


def _date_part(v: Any) -> Any:  # noqa: ANN401
    """Accept full ISO timestamps ("2025-03-22T00:00:00.000Z") for date fields."""
    if isinstance(v, str) and "T" in v:
        return v.split("T", 1)[0]
    if isinstance(v, datetime):
        return v.date()
    return v


class MembershipCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    type: MembershipType
    start_date: date
    days_per_week: int | None = Field(None, ge=1, le=7)
    price: float = Field(..., ge=0)
    auto_renew: bool = False
    # Accepted for compatibility; new memberships always start active.
    status: MembershipStatus | None = None

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start(cls, v: Any) -> Any:  # noqa: ANN401
        return _date_part(v)


class MembershipUpdate(BaseModel):
    type: MembershipType | None = None
    status: MembershipStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    days_per_week: int | None = Field(None, ge=1, le=7)
    price: float | None = Field(None, ge=0)
    auto_renew: bool | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:  # noqa: ANN401
        return _date_part(v)


class MembershipResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    user_id: str
    type: MembershipType
    status: MembershipStatus
    start_date: date
    end_date: date
    days_per_week: int | None = None
    price: float
    auto_renew: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MembershipBatchResult(BaseModel):
    """Result of check-expired / auto-renew / expiring scans."""

    message: str
    count: int
    memberships: list[MembershipResponse]
