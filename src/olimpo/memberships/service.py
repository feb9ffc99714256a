"""
Membership lifecycle: creation, renewal, expiry and auto-renewal.

End dates are derived from the membership type: a fixed number of days added
to the start date on creation, or to the current end date on renewal.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from olimpo.db.base import utcnow
from olimpo.db.models import Membership
from olimpo.errors import BusinessRuleViolation, NotFound
from olimpo.memberships.schemas import MembershipStatus, MembershipType
from olimpo.users.service import require_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from olimpo.memberships.schemas import MembershipCreate, MembershipUpdate

logger = structlog.get_logger()

DURATION_DAYS: dict[MembershipType, int] = {
    MembershipType.MONTHLY: 30,
    MembershipType.KICKBOXING: 30,
    MembershipType.QUARTERLY: 90,
    MembershipType.BIANNUAL: 180,
    MembershipType.ANNUAL: 365,
}


def membership_duration(membership_type: str) -> timedelta:
    return timedelta(days=DURATION_DAYS[MembershipType(membership_type)])


def compute_end_date(membership_type: str, start: date) -> date:
    """End date of a membership of this type starting on ``start``."""
    return start + membership_duration(membership_type)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def create_membership(db: AsyncSession, body: MembershipCreate) -> Membership:
    """
    Create a membership. The status is always ``active``.

    Raises:
        BusinessRuleViolation: kickboxing without days_per_week.
        NotFound: unknown user.
    """
    if body.type == MembershipType.KICKBOXING and not body.days_per_week:
        msg = "Los días por semana son requeridos para membresías de kickboxing"
        raise BusinessRuleViolation(msg)
    await require_user(db, body.user_id)

    membership = Membership(
        user_id=body.user_id,
        type=body.type.value,
        status=MembershipStatus.ACTIVE.value,
        start_date=body.start_date,
        end_date=compute_end_date(body.type, body.start_date),
        days_per_week=body.days_per_week,
        price=body.price,
        auto_renew=body.auto_renew,
    )
    db.add(membership)
    await db.flush()
    logger.info("membership_created", membership_id=membership.id, user_id=membership.user_id, type=membership.type)
    return membership


async def list_memberships(db: AsyncSession) -> list[Membership]:
    result = await db.execute(select(Membership).order_by(Membership.created_at.desc()))
    return list(result.scalars().all())


async def get_membership(db: AsyncSession, membership_id: str) -> Membership:
    result = await db.execute(select(Membership).where(Membership.id == membership_id))
    membership = result.scalar_one_or_none()
    if membership is None:
        msg = "Membresía no encontrada"
        raise NotFound(msg)
    return membership


async def list_user_memberships(db: AsyncSession, user_id: str) -> list[Membership]:
    result = await db.execute(
        select(Membership).where(Membership.user_id == user_id).order_by(Membership.created_at.desc())
    )
    return list(result.scalars().all())


async def find_active_membership(db: AsyncSession, user_id: str) -> Membership | None:
    result = await db.execute(
        select(Membership)
        .where(Membership.user_id == user_id)
        .where(Membership.status == MembershipStatus.ACTIVE.value)
        .order_by(Membership.end_date.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def update_membership(db: AsyncSession, membership_id: str, body: MembershipUpdate) -> Membership:
    """
    Partial update. Changing type or start date recomputes the end date
    unless an explicit end date is supplied.
    """
    membership = await get_membership(db, membership_id)
    data = body.model_dump(exclude_unset=True, exclude_none=True)
    for key in ("type", "status"):
        if key in data:
            data[key] = data[key].value

    new_type = data.get("type", membership.type)
    if new_type == MembershipType.KICKBOXING and not data.get("days_per_week", membership.days_per_week):
        msg = "Los días por semana son requeridos para membresías de kickboxing"
        raise BusinessRuleViolation(msg)

    recompute = ("type" in data or "start_date" in data) and "end_date" not in data
    for field, value in data.items():
        setattr(membership, field, value)
    if recompute:
        membership.end_date = compute_end_date(membership.type, membership.start_date)

    await db.flush()
    logger.info("membership_updated", membership_id=membership.id, fields=sorted(data))
    return membership


async def delete_membership(db: AsyncSession, membership_id: str) -> None:
    membership = await get_membership(db, membership_id)
    await db.delete(membership)
    await db.flush()
    logger.info("membership_deleted", membership_id=membership_id)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def renew_membership(db: AsyncSession, membership_id: str) -> Membership:
    """Extend from the stored end date by one period. Status is left alone."""
    result = await db.execute(select(Membership).where(Membership.id == membership_id))
    membership = result.scalar_one_or_none()
    if membership is None:
        msg = f"No se encontró la membresía con ID: {membership_id}"
        raise NotFound(msg)

    previous = membership.end_date
    membership.end_date = previous + membership_duration(membership.type)
    await db.flush()
    logger.info(
        "membership_renewed",
        membership_id=membership.id,
        previous_end=str(previous),
        new_end=str(membership.end_date),
    )
    return membership


async def expire_overdue(db: AsyncSession, today: date | None = None) -> list[Membership]:
    """Mark active memberships whose end date is before ``today`` as expired."""
    today = today or utcnow().date()
    result = await db.execute(
        select(Membership)
        .where(Membership.status == MembershipStatus.ACTIVE.value)
        .where(Membership.end_date < today)
    )
    expired = list(result.scalars().all())
    for membership in expired:
        membership.status = MembershipStatus.EXPIRED.value
    await db.flush()
    logger.info("memberships_expired", count=len(expired))
    return expired


async def auto_renew(db: AsyncSession, today: date | None = None) -> list[Membership]:
    """
    Renew expired memberships flagged auto_renew by one period.

    A renewed membership becomes active again only when its new end date is
    today or later; one that lapsed more than a period ago stays expired.
    """
    today = today or utcnow().date()
    result = await db.execute(
        select(Membership)
        .where(Membership.status == MembershipStatus.EXPIRED.value)
        .where(Membership.auto_renew.is_(True))
    )
    renewed = []
    for membership in result.scalars().all():
        await renew_membership(db, membership.id)
        if membership.end_date >= today:
            membership.status = MembershipStatus.ACTIVE.value
        renewed.append(membership)
    await db.flush()
    logger.info("memberships_auto_renewed", count=len(renewed))
    return renewed


async def find_expiring(db: AsyncSession, start: date, end: date) -> list[Membership]:
    """Active memberships whose end date falls within [start, end]."""
    result = await db.execute(
        select(Membership)
        .where(Membership.status == MembershipStatus.ACTIVE.value)
        .where(Membership.end_date >= start)
        .where(Membership.end_date <= end)
        .order_by(Membership.end_date)
    )
    return list(result.scalars().all())
