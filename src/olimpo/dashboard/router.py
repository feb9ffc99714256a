"""Dashboard endpoints: read-only aggregates for admins."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.dependencies import require_admin
from olimpo.dashboard import service
from olimpo.database import get_session
from olimpo.redis_client import get_optional_redis

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"], dependencies=[Depends(require_admin)])


@router.get("/stats")
async def dashboard_stats(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Memberships, attendance, blog and new-user figures in one payload (cached in Redis)."""
    return await service.get_dashboard_stats(db, get_optional_redis())


@router.get("/memberships")
async def membership_stats(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await service.membership_stats(db)


@router.get("/attendance")
async def attendance_stats(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await service.attendance_stats(db)


@router.get("/attendance/daily")
async def daily_attendance(db: AsyncSession = Depends(get_session)) -> list[dict[str, Any]]:
    """Check-ins per day over the last 30 days."""
    return await service.daily_attendance(db)


@router.get("/blog")
async def blog_stats(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await service.blog_stats(db)


@router.get("/users")
async def new_user_stats(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return await service.new_user_stats(db)


@router.get("/revenue")
async def monthly_revenue(db: AsyncSession = Depends(get_session)) -> list[dict[str, Any]]:
    """Membership revenue per month over the last 12 months."""
    return await service.monthly_revenue(db)
