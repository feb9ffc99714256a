"""User management router: /api/users/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.dependencies import Principal, ensure_self_or_admin, get_current_principal, require_admin
from olimpo.database import get_session
from olimpo.users.schemas import MessageResponse, UserCreateRequest, UserResponse, UserUpdateRequest
from olimpo.users.service import create_user, delete_user, list_users, require_user, update_user

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=201)
async def create(
    body: UserCreateRequest,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Create an account on behalf of a member (admin)."""
    user = await create_user(
        db,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        is_admin=body.is_admin,
        role=body.role.value,
    )
    await db.commit()
    return UserResponse.model_validate(user)


@router.get("", response_model=list[UserResponse])
async def find_all(
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> list[UserResponse]:
    users = await list_users(db)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/{user_id}", response_model=UserResponse)
async def find_one(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    ensure_self_or_admin(principal, user_id)
    return UserResponse.model_validate(await require_user(db, user_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update(
    user_id: str,
    body: UserUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update a profile. Members may edit themselves; admins anyone."""
    ensure_self_or_admin(principal, user_id)
    user = await update_user(db, principal, user_id, body)
    await db.commit()
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def remove(
    user_id: str,
    _admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await delete_user(db, user_id)
    await db.commit()
    return MessageResponse(message="Usuario eliminado correctamente")
