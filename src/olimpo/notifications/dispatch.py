"""
Background delivery of membership lifecycle notifications.

These run as FastAPI background tasks after the membership change has been
committed. Each opens its own session; a failure for one membership is
logged and the loop moves on, so nothing here can undo the state change.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from olimpo.database import get_session
from olimpo.db.base import utcnow
from olimpo.db.models import Membership, User
from olimpo.notifications.schemas import NotificationType
from olimpo.notifications.service import (
    find_default_template,
    send_email,
    send_membership_expiration_notification,
    send_membership_renewal_notification,
    send_whatsapp,
)
from olimpo.notifications.templates import (
    expired_message,
    reminder_email_body,
    reminder_whatsapp_body,
    renewed_message,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

REMINDER_SUBJECT = "Tu membresía está por expirar - Olimpo Gym"


def days_until(end_date: date, today: date | None = None) -> int:
    return (end_date - (today or utcnow().date())).days


async def _load(db: AsyncSession, membership_id: str) -> tuple[Membership, User] | None:
    result = await db.execute(
        select(Membership, User).join(User, User.id == Membership.user_id).where(Membership.id == membership_id)
    )
    row = result.one_or_none()
    return (row[0], row[1]) if row else None


async def _whatsapp(
    db: AsyncSession,
    user: User,
    membership: Membership,
    message: str,
    name_fragment: str,
) -> None:
    """WhatsApp goes out only to members with a phone and when a default template exists."""
    if not user.phone:
        return
    template = await find_default_template(db, NotificationType.WHATSAPP, name_fragment)
    if template is None:
        logger.info("whatsapp_skipped_no_template", membership_id=membership.id, template=name_fragment)
        return
    await send_whatsapp(
        db,
        user.phone,
        message,
        user_id=user.id,
        membership_id=membership.id,
        template_id=template.id,
    )


# ---------------------------------------------------------------------------
# Entry points (scheduled with BackgroundTasks)
# ---------------------------------------------------------------------------


async def notify_expired(membership_ids: list[str]) -> None:
    async for db in get_session():
        for membership_id in membership_ids:
            try:
                loaded = await _load(db, membership_id)
                if loaded is None:
                    continue
                membership, user = loaded
                await send_membership_expiration_notification(
                    db,
                    email=user.email,
                    name=user.full_name,
                    expiration_date=membership.end_date,
                    membership_type=membership.type,
                    user_id=user.id,
                    membership_id=membership.id,
                )
                await _whatsapp(
                    db, user, membership, expired_message(user.full_name, membership.type, membership.end_date),
                    "expiracion",
                )
            except Exception:
                logger.exception("expiration_notification_failed", membership_id=membership_id)
                await db.rollback()
        break


async def notify_renewed(membership_ids: list[str]) -> None:
    async for db in get_session():
        for membership_id in membership_ids:
            try:
                loaded = await _load(db, membership_id)
                if loaded is None:
                    continue
                membership, user = loaded
                await send_membership_renewal_notification(
                    db,
                    email=user.email,
                    name=user.full_name,
                    new_expiration_date=membership.end_date,
                    membership_type=membership.type,
                    user_id=user.id,
                    membership_id=membership.id,
                )
                await _whatsapp(
                    db, user, membership, renewed_message(user.full_name, membership.type, membership.end_date),
                    "renovacion",
                )
            except Exception:
                logger.exception("renewal_notification_failed", membership_id=membership_id)
                await db.rollback()
        break


async def notify_expiring(membership_ids: list[str]) -> None:
    async for db in get_session():
        for membership_id in membership_ids:
            try:
                loaded = await _load(db, membership_id)
                if loaded is None:
                    continue
                membership, user = loaded
                days = days_until(membership.end_date)
                await send_email(
                    db,
                    user.email,
                    REMINDER_SUBJECT,
                    reminder_email_body(user.full_name, membership.type, days, membership.end_date),
                    user_id=user.id,
                    membership_id=membership.id,
                )
                await _whatsapp(
                    db, user, membership,
                    reminder_whatsapp_body(user.full_name, membership.type, days, membership.end_date),
                    "expiracion",
                )
            except Exception:
                logger.exception("expiry_reminder_failed", membership_id=membership_id)
                await db.rollback()
        break
