"""Attendance router: /api/attendance/* endpoints, including QR check-in."""

from __future__ import annotations

from datetime import datetime, time, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.attendance import service
from olimpo.attendance.qr import make_qr_token, parse_check_in_payload, qr_data_url
from olimpo.attendance.schemas import (
    AttendanceCreate,
    AttendanceResponse,
    AttendanceUpdate,
    CheckInRequest,
    CheckInResponse,
    QrCodeResponse,
    QrVerifyRequest,
    RegisterAttendanceRequest,
)
from olimpo.auth.dependencies import Principal, ensure_self_or_admin, get_current_principal, require_admin
from olimpo.auth.schemas import MessageResponse
from olimpo.database import get_session
from olimpo.errors import ValidationFailed
from olimpo.users.service import require_user

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])

GYM_ATTENDANCE = "gym_attendance"


def _parse_bound(value: str, *, end: bool) -> datetime:
    """Parse an ISO date or timestamp; a bare end date covers the whole day."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        msg = f"Formato de fecha inválido: {value}"
        raise ValidationFailed(msg) from exc
    if end and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def _check_in(db: AsyncSession, raw: str | None) -> CheckInResponse:
    payload = parse_check_in_payload(raw)
    attendance = await service.create_attendance(db, payload.user_id)
    await db.commit()
    return CheckInResponse(
        message="Asistencia registrada correctamente",
        attendance=AttendanceResponse.model_validate(attendance),
    )


@router.post("", response_model=AttendanceResponse, status_code=201)
async def create(
    body: AttendanceCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> AttendanceResponse:
    """Check a member in. Members may only check themselves in."""
    ensure_self_or_admin(principal, body.user_id)
    attendance = await service.create_attendance(
        db, body.user_id, membership_id=body.membership_id, check_in_time=body.check_in_time
    )
    await db.commit()
    return AttendanceResponse.model_validate(attendance)


@router.get("", response_model=list[AttendanceResponse])
async def find_all(
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[AttendanceResponse]:
    return [AttendanceResponse.model_validate(a) for a in await service.list_attendance(db)]


@router.get("/date-range", response_model=list[AttendanceResponse])
async def find_by_date_range(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[AttendanceResponse]:
    if not start_date or not end_date:
        msg = "Se requieren las fechas de inicio y fin"
        raise ValidationFailed(msg)
    rows = await service.list_by_date_range(
        db, _parse_bound(start_date, end=False), _parse_bound(end_date, end=True)
    )
    return [AttendanceResponse.model_validate(a) for a in rows]


# ---------------------------------------------------------------------------
# QR check-in
# ---------------------------------------------------------------------------


@router.get("/check-in", response_model=CheckInResponse, status_code=201)
async def check_in_from_query(
    data: str | None = Query(None),
    db: AsyncSession = Depends(get_session),
) -> CheckInResponse:
    """Public endpoint hit by scanning a gym QR code. No authentication."""
    return await _check_in(db, data)


@router.post("/check-in", response_model=CheckInResponse, status_code=201)
async def check_in_from_body(
    body: CheckInRequest,
    db: AsyncSession = Depends(get_session),
) -> CheckInResponse:
    return await _check_in(db, body.data)


@router.post("/register", response_model=AttendanceResponse, status_code=201)
async def register(
    body: RegisterAttendanceRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> AttendanceResponse:
    """Record attendance from a scanned gym code inside the member app."""
    if body.qr_data.type != GYM_ATTENDANCE:
        msg = "Código QR inválido para registro de asistencia"
        raise ValidationFailed(msg)
    ensure_self_or_admin(principal, body.user_id, "No tienes permiso para registrar la asistencia de otro usuario")
    attendance = await service.create_attendance(db, body.user_id)
    await db.commit()
    return AttendanceResponse.model_validate(attendance)


@router.post("/qr/generate/{user_id}", response_model=QrCodeResponse)
async def generate_qr(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> QrCodeResponse:
    ensure_self_or_admin(principal, user_id)
    await require_user(db, user_id)
    return QrCodeResponse(qr_code=qr_data_url(make_qr_token(user_id)))


@router.post("/qr/verify", response_model=AttendanceResponse, status_code=201)
async def verify_qr(
    body: QrVerifyRequest,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AttendanceResponse:
    """Staff scan of a member token; requires an active membership."""
    attendance = await service.verify_qr(db, body.token)
    await db.commit()
    return AttendanceResponse.model_validate(attendance)


# ---------------------------------------------------------------------------
# Per user / single record
# ---------------------------------------------------------------------------


@router.get("/user/{user_id}", response_model=list[AttendanceResponse])
async def find_by_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> list[AttendanceResponse]:
    ensure_self_or_admin(principal, user_id)
    return [AttendanceResponse.model_validate(a) for a in await service.list_user_attendance(db, user_id)]


@router.get("/user/{user_id}/history", response_model=list[AttendanceResponse])
async def history(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> list[AttendanceResponse]:
    ensure_self_or_admin(
        principal, user_id, "No tienes permiso para ver el historial de asistencias de este usuario"
    )
    return [AttendanceResponse.model_validate(a) for a in await service.list_user_attendance(db, user_id)]


@router.get("/{attendance_id}", response_model=AttendanceResponse)
async def find_one(
    attendance_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> AttendanceResponse:
    attendance = await service.get_attendance(db, attendance_id)
    ensure_self_or_admin(principal, attendance.user_id)
    return AttendanceResponse.model_validate(attendance)


@router.patch("/{attendance_id}", response_model=AttendanceResponse)
async def update(
    attendance_id: str,
    body: AttendanceUpdate,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AttendanceResponse:
    attendance = await service.update_attendance(db, attendance_id, body)
    await db.commit()
    return AttendanceResponse.model_validate(attendance)


@router.delete("/{attendance_id}", response_model=MessageResponse)
async def remove(
    attendance_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await service.delete_attendance(db, attendance_id)
    await db.commit()
    return MessageResponse(message="Asistencia eliminada correctamente")


@router.post("/{attendance_id}/check-out", response_model=AttendanceResponse)
async def check_out(
    attendance_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AttendanceResponse:
    attendance = await service.check_out(db, attendance_id)
    await db.commit()
    return AttendanceResponse.model_validate(attendance)
