"""Dashboard aggregates for the admin panel.

Every figure is computed in UTC. The combined stats payload is cached in
Redis for ``dashboard_cache_ttl_seconds`` when Redis is available.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog
from redis.exceptions import RedisError
from sqlalchemy import extract, func, select

from olimpo.blog.schemas import PostStatus
from olimpo.config import get_settings
from olimpo.db.base import utcnow
from olimpo.db.models import Attendance, Membership, Post, User
from olimpo.memberships.schemas import MembershipStatus

if TYPE_CHECKING:
    import redis.asyncio as aioredis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DASHBOARD_CACHE_KEY = "dashboard:stats"

SPANISH_MONTHS = ("ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sep", "oct", "nov", "dic")


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def month_start(moment: datetime, months_back: int = 0) -> datetime:
    """First instant of the month ``months_back`` months before ``moment``."""
    index = moment.year * 12 + (moment.month - 1) - months_back
    return _start_of_day(moment).replace(year=index // 12, month=index % 12 + 1, day=1)


def one_month_before(moment: datetime) -> datetime:
    """Same day of the previous month, clamped to that month's length."""
    first = month_start(moment, 1)
    last_day = (month_start(moment) - timedelta(days=1)).day
    return first.replace(day=min(moment.day, last_day))


def percent_change(current: int, previous: int) -> float:
    if previous == 0:
        return 100.0
    return (current - previous) / previous * 100


async def _count(db: AsyncSession, query: Any) -> int:  # noqa: ANN401
    return int((await db.execute(query)).scalar() or 0)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


async def membership_stats(db: AsyncSession) -> dict[str, Any]:
    by_status_rows = await db.execute(select(Membership.status, func.count()).group_by(Membership.status))
    by_status = {status: count for status, count in by_status_rows.all()}
    by_type_rows = await db.execute(select(Membership.type, func.count()).group_by(Membership.type))
    revenue = await db.execute(
        select(func.coalesce(func.sum(Membership.price), 0)).where(Membership.created_at >= month_start(utcnow()))
    )
    return {
        "total": sum(by_status.values()),
        "active": by_status.get(MembershipStatus.ACTIVE.value, 0),
        "expired": by_status.get(MembershipStatus.EXPIRED.value, 0),
        "pending": by_status.get(MembershipStatus.PENDING.value, 0),
        "byType": {membership_type: count for membership_type, count in by_type_rows.all()},
        "revenueCurrentMonth": float(revenue.scalar() or 0),
    }


async def attendance_stats(db: AsyncSession) -> dict[str, Any]:
    today = _start_of_day(utcnow())
    total_month = await _count(
        db, select(func.count(Attendance.id)).where(Attendance.check_in_time >= one_month_before(today))
    )
    hour = extract("hour", Attendance.check_in_time)
    hour_rows = await db.execute(select(hour, func.count(Attendance.id)).group_by(hour))
    buckets = dict.fromkeys(range(24), 0)
    for hour_value, count in hour_rows.all():
        buckets[int(hour_value)] = count
    peak_hours = sorted(({"hour": h, "count": c} for h, c in buckets.items()), key=lambda b: -b["count"])[:5]

    return {
        "totalToday": await _count(db, select(func.count(Attendance.id)).where(Attendance.check_in_time >= today)),
        "totalWeek": await _count(
            db, select(func.count(Attendance.id)).where(Attendance.check_in_time >= today - timedelta(days=7))
        ),
        "totalMonth": total_month,
        "averagePerDay": total_month / 30,
        "peakHours": peak_hours,
    }


async def blog_stats(db: AsyncSession) -> dict[str, Any]:
    totals = await db.execute(select(func.count(Post.id), func.coalesce(func.sum(Post.views), 0)))
    total_posts, total_views = totals.one()
    top = await db.execute(select(Post.id, Post.title, Post.views).order_by(Post.views.desc()).limit(5))
    return {
        "totalPosts": total_posts,
        "totalViews": int(total_views),
        "mostViewedPosts": [{"id": pid, "title": title, "views": views} for pid, title, views in top.all()],
    }


async def new_user_stats(db: AsyncSession) -> dict[str, Any]:
    now = utcnow()
    current_start = month_start(now)
    previous_start = month_start(now, 1)
    current = await _count(db, select(func.count(User.id)).where(User.created_at >= current_start))
    previous = await _count(
        db,
        select(func.count(User.id)).where(User.created_at >= previous_start).where(User.created_at < current_start),
    )
    return {"count": current, "percentChange": percent_change(current, previous)}


async def monthly_revenue(db: AsyncSession) -> list[dict[str, Any]]:
    """Revenue of memberships created in each of the last 12 months, oldest first."""
    now = utcnow()
    points = []
    for months_back in range(11, -1, -1):
        start = month_start(now, months_back)
        end = month_start(now, months_back - 1)
        result = await db.execute(
            select(func.coalesce(func.sum(Membership.price), 0))
            .where(Membership.created_at >= start)
            .where(Membership.created_at < end)
        )
        points.append({"month": SPANISH_MONTHS[start.month - 1], "revenue": float(result.scalar() or 0)})
    return points


async def daily_attendance(db: AsyncSession) -> list[dict[str, Any]]:
    """Check-ins per day for the last 30 days, oldest first."""
    today = _start_of_day(utcnow())
    points = []
    for days_back in range(29, -1, -1):
        day = today - timedelta(days=days_back)
        count = await _count(
            db,
            select(func.count(Attendance.id))
            .where(Attendance.check_in_time >= day)
            .where(Attendance.check_in_time < day + timedelta(days=1)),
        )
        points.append({"date": day.strftime("%d/%m"), "count": count})
    return points


# ---------------------------------------------------------------------------
# Combined
# ---------------------------------------------------------------------------


async def get_dashboard_stats(db: AsyncSession, redis: aioredis.Redis | None = None) -> dict[str, Any]:
    """Combined payload for the dashboard landing page."""
    if redis is not None:
        try:
            cached = await redis.get(DASHBOARD_CACHE_KEY)
        except RedisError:
            logger.warning("dashboard_cache_unavailable", exc_info=True)
            cached = None
        if cached:
            return json.loads(cached)

    stats = {
        "memberships": await membership_stats(db),
        "attendance": await attendance_stats(db),
        "blog": await blog_stats(db),
        "newUsers": await new_user_stats(db),
    }

    if redis is not None:
        try:
            await redis.setex(DASHBOARD_CACHE_KEY, get_settings().dashboard_cache_ttl_seconds, json.dumps(stats))
        except RedisError:
            logger.warning("dashboard_cache_write_failed", exc_info=True)
    return stats
