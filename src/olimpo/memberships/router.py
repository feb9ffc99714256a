"""Membership router: /api/memberships/* endpoints."""

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.dependencies import Principal, ensure_self_or_admin, get_current_principal, require_admin
from olimpo.auth.schemas import MessageResponse
from olimpo.config import get_settings
from olimpo.database import get_session
from olimpo.db.base import utcnow
from olimpo.memberships import service
from olimpo.memberships.schemas import (
    MembershipBatchResult,
    MembershipCreate,
    MembershipResponse,
    MembershipUpdate,
)
from olimpo.notifications.dispatch import notify_expired, notify_expiring, notify_renewed

router = APIRouter(prefix="/api/memberships", tags=["Memberships"])


@router.post("", response_model=MembershipResponse, status_code=201)
async def create(
    body: MembershipCreate,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MembershipResponse:
    """Create a membership; the end date follows from type and start date."""
    membership = await service.create_membership(db, body)
    await db.commit()
    return MembershipResponse.model_validate(membership)


@router.get("", response_model=list[MembershipResponse])
async def find_all(
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[MembershipResponse]:
    return [MembershipResponse.model_validate(m) for m in await service.list_memberships(db)]


# ---------------------------------------------------------------------------
# Lifecycle scans
# ---------------------------------------------------------------------------


@router.get("/expiring", response_model=MembershipBatchResult)
async def expiring(
    background_tasks: BackgroundTasks,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    notify: bool = Query(False),
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MembershipBatchResult:
    """Active memberships ending within the window (default: the next reminder period)."""
    start = start_date or utcnow().date()
    end = end_date or start + timedelta(days=get_settings().membership_reminder_days)
    memberships = await service.find_expiring(db, start, end)
    if notify and memberships:
        background_tasks.add_task(notify_expiring, [m.id for m in memberships])
    return MembershipBatchResult(
        message=f"Se encontraron {len(memberships)} membresías por expirar",
        count=len(memberships),
        memberships=[MembershipResponse.model_validate(m) for m in memberships],
    )


@router.post("/check-expired", response_model=MembershipBatchResult)
async def check_expired(
    background_tasks: BackgroundTasks,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MembershipBatchResult:
    """Expire overdue memberships, then notify the members in the background."""
    expired = await service.expire_overdue(db)
    await db.commit()
    if expired:
        background_tasks.add_task(notify_expired, [m.id for m in expired])
    return MembershipBatchResult(
        message="Verificación de membresías expiradas completada",
        count=len(expired),
        memberships=[MembershipResponse.model_validate(m) for m in expired],
    )


@router.post("/auto-renew", response_model=MembershipBatchResult)
async def auto_renew(
    background_tasks: BackgroundTasks,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MembershipBatchResult:
    renewed = await service.auto_renew(db)
    await db.commit()
    if renewed:
        background_tasks.add_task(notify_renewed, [m.id for m in renewed])
    return MembershipBatchResult(
        message="Renovación automática de membresías completada",
        count=len(renewed),
        memberships=[MembershipResponse.model_validate(m) for m in renewed],
    )


# ---------------------------------------------------------------------------
# Single membership
# ---------------------------------------------------------------------------


@router.get("/user/{user_id}", response_model=list[MembershipResponse])
async def find_by_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> list[MembershipResponse]:
    ensure_self_or_admin(principal, user_id)
    return [MembershipResponse.model_validate(m) for m in await service.list_user_memberships(db, user_id)]


@router.get("/{membership_id}", response_model=MembershipResponse)
async def find_one(
    membership_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> MembershipResponse:
    membership = await service.get_membership(db, membership_id)
    ensure_self_or_admin(principal, membership.user_id)
    return MembershipResponse.model_validate(membership)


@router.patch("/{membership_id}", response_model=MembershipResponse)
async def update(
    membership_id: str,
    body: MembershipUpdate,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MembershipResponse:
    membership = await service.update_membership(db, membership_id, body)
    await db.commit()
    return MembershipResponse.model_validate(membership)


@router.delete("/{membership_id}", response_model=MessageResponse)
async def remove(
    membership_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await service.delete_membership(db, membership_id)
    await db.commit()
    return MessageResponse(message="Membresía eliminada correctamente")


@router.post("/{membership_id}/renew", response_model=MembershipResponse)
async def renew(
    membership_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MembershipResponse:
    """Extend by one period from the current end date."""
    membership = await service.renew_membership(db, membership_id)
    await db.commit()
    return MembershipResponse.model_validate(membership)
