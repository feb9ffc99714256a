"""
Attendance records: check-in, check-out and QR verification.

A check-in attaches the user's membership when one can be resolved. The
membership reference is best-effort: if inserting it violates a constraint
the row is inserted again without it.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from olimpo.attendance.qr import parse_qr_token
from olimpo.db.base import utcnow
from olimpo.db.models import Attendance, Membership
from olimpo.errors import BusinessRuleViolation, NotFound, UpstreamFailure
from olimpo.memberships.service import find_active_membership
from olimpo.users.service import require_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from olimpo.attendance.schemas import AttendanceUpdate

logger = structlog.get_logger()


def _start_of_today() -> datetime:
    return utcnow().replace(hour=0, minute=0, second=0, microsecond=0)


async def _open_attendance_today(db: AsyncSession, user_id: str) -> Attendance | None:
    result = await db.execute(
        select(Attendance)
        .where(Attendance.user_id == user_id)
        .where(Attendance.check_in_time >= _start_of_today())
        .where(Attendance.check_out_time.is_(None))
        .order_by(Attendance.check_in_time.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _resolve_membership_id(db: AsyncSession, user_id: str) -> str | None:
    active = await find_active_membership(db, user_id)
    if active is not None:
        return active.id
    result = await db.execute(
        select(Membership.id).where(Membership.user_id == user_id).order_by(Membership.created_at).limit(1)
    )
    return result.scalar_one_or_none()


async def _insert(db: AsyncSession, **values: object) -> Attendance:
    async with db.begin_nested():
        attendance = Attendance(**values)
        db.add(attendance)
        await db.flush()
    return attendance


# ---------------------------------------------------------------------------
# Check-in / check-out
# ---------------------------------------------------------------------------


async def create_attendance(
    db: AsyncSession,
    user_id: str,
    membership_id: str | None = None,
    check_in_time: datetime | None = None,
) -> Attendance:
    """
    Record a check-in for ``user_id``.

    An open attendance checked in today is returned unchanged instead of
    creating a second row.

    Raises:
        NotFound: unknown user.
        UpstreamFailure: the insert failed even without a membership.
    """
    await require_user(db, user_id)

    existing = await _open_attendance_today(db, user_id)
    if existing is not None:
        logger.info("attendance_already_open", attendance_id=existing.id, user_id=user_id)
        return existing

    if membership_id is None:
        membership_id = await _resolve_membership_id(db, user_id)
    check_in = check_in_time or utcnow()

    try:
        attendance = await _insert(db, user_id=user_id, membership_id=membership_id, check_in_time=check_in)
    except IntegrityError as exc:
        if membership_id is None:
            msg = f"Error al registrar la asistencia: {exc.orig}"
            raise UpstreamFailure(msg) from exc
        logger.warning(
            "attendance_membership_rejected",
            user_id=user_id,
            membership_id=membership_id,
            error=str(exc.orig),
        )
        try:
            attendance = await _insert(db, user_id=user_id, check_in_time=check_in)
        except IntegrityError as retry_exc:
            msg = f"Error al registrar la asistencia: {retry_exc.orig}"
            raise UpstreamFailure(msg) from retry_exc

    logger.info(
        "attendance_created",
        attendance_id=attendance.id,
        user_id=user_id,
        membership_id=attendance.membership_id,
    )
    return attendance


async def check_out(db: AsyncSession, attendance_id: str) -> Attendance:
    attendance = await get_attendance(db, attendance_id)
    if attendance.check_out_time is not None:
        msg = "La salida ya ha sido registrada"
        raise BusinessRuleViolation(msg)
    attendance.check_out_time = utcnow()
    await db.flush()
    logger.info("attendance_checked_out", attendance_id=attendance.id, user_id=attendance.user_id)
    return attendance


async def verify_qr(db: AsyncSession, token: str) -> Attendance:
    """Check a QR token and record attendance for the embedded user."""
    user_id = parse_qr_token(token)
    membership = await find_active_membership(db, user_id)
    if membership is None:
        msg = "El usuario no tiene una membresía activa"
        raise BusinessRuleViolation(msg)
    return await create_attendance(db, user_id, membership_id=membership.id)


# ---------------------------------------------------------------------------
# Queries and admin edits
# ---------------------------------------------------------------------------


async def list_attendance(db: AsyncSession) -> list[Attendance]:
    result = await db.execute(select(Attendance).order_by(Attendance.check_in_time.desc()))
    return list(result.scalars().all())


async def get_attendance(db: AsyncSession, attendance_id: str) -> Attendance:
    result = await db.execute(select(Attendance).where(Attendance.id == attendance_id))
    attendance = result.scalar_one_or_none()
    if attendance is None:
        msg = "Asistencia no encontrada"
        raise NotFound(msg)
    return attendance


async def list_user_attendance(db: AsyncSession, user_id: str) -> list[Attendance]:
    result = await db.execute(
        select(Attendance).where(Attendance.user_id == user_id).order_by(Attendance.check_in_time.desc())
    )
    return list(result.scalars().all())


async def list_by_date_range(db: AsyncSession, start: datetime, end: datetime) -> list[Attendance]:
    result = await db.execute(
        select(Attendance)
        .where(Attendance.check_in_time >= start)
        .where(Attendance.check_in_time <= end)
        .order_by(Attendance.check_in_time.desc())
    )
    return list(result.scalars().all())


async def update_attendance(db: AsyncSession, attendance_id: str, body: AttendanceUpdate) -> Attendance:
    attendance = await get_attendance(db, attendance_id)
    data = body.model_dump(exclude_unset=True)
    if attendance.check_out_time is not None and "check_out_time" in data:
        msg = "La salida ya ha sido registrada"
        raise BusinessRuleViolation(msg)
    for field, value in data.items():
        setattr(attendance, field, value)
    await db.flush()
    logger.info("attendance_updated", attendance_id=attendance.id, fields=sorted(data))
    return attendance


async def delete_attendance(db: AsyncSession, attendance_id: str) -> None:
    attendance = await get_attendance(db, attendance_id)
    await db.delete(attendance)
    await db.flush()
    logger.info("attendance_deleted", attendance_id=attendance_id)
