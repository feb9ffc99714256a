"""Routine router: /api/users/{user_id}/routine."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.dependencies import Principal, ensure_self_or_admin, get_current_principal
from olimpo.auth.schemas import MessageResponse
from olimpo.database import get_session
from olimpo.routines.schemas import RoutineRequest, RoutineResponse
from olimpo.routines.service import delete_routine, get_routine, save_routine

router = APIRouter(prefix="/api/users/{user_id}/routine", tags=["Routines"])


@router.get("", response_model=RoutineResponse)
async def read(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> RoutineResponse:
    ensure_self_or_admin(principal, user_id)
    return RoutineResponse.model_validate(await get_routine(db, user_id))


@router.post("", response_model=RoutineResponse)
async def save(
    user_id: str,
    body: RoutineRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> RoutineResponse:
    ensure_self_or_admin(principal, user_id)
    routine = await save_routine(db, user_id, body.routine, has_routine=body.has_routine)
    await db.commit()
    return RoutineResponse.model_validate(routine)


@router.delete("", response_model=MessageResponse)
async def remove(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    ensure_self_or_admin(principal, user_id)
    await delete_routine(db, user_id)
    await db.commit()
    return MessageResponse(message="Rutina eliminada correctamente")
