"""One routine per member, replaced wholesale on save."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select

from olimpo.db.models import Routine
from olimpo.errors import NotFound
from olimpo.users.service import require_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_routine(db: AsyncSession, user_id: str) -> Routine:
    result = await db.execute(select(Routine).where(Routine.user_id == user_id))
    routine = result.scalar_one_or_none()
    if routine is None:
        msg = f"Rutina para el usuario {user_id} no encontrada"
        raise NotFound(msg)
    return routine


async def save_routine(db: AsyncSession, user_id: str, routine: list[Any], *, has_routine: bool) -> Routine:
    """Create or replace the user's routine."""
    await require_user(db, user_id)
    result = await db.execute(select(Routine).where(Routine.user_id == user_id))
    row = result.scalar_one_or_none()
    if row is None:
        row = Routine(user_id=user_id, routine=routine, has_routine=has_routine)
        db.add(row)
    else:
        row.routine = routine
        row.has_routine = has_routine
    await db.flush()
    logger.info("routine_saved", user_id=user_id, exercises=len(routine))
    return row


async def delete_routine(db: AsyncSession, user_id: str) -> None:
    routine = await get_routine(db, user_id)
    await db.delete(routine)
    await db.flush()
