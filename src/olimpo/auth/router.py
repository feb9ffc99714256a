"""Authentication router: /api/auth/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.dependencies import Principal, get_current_principal
from olimpo.auth.schemas import (
    AccessToken,
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserResponse,
)
from olimpo.auth.service import authenticate_user, issue_token, register_user
from olimpo.database import get_session
from olimpo.users.service import require_user

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Register a member account and return an access token."""
    user = await register_user(db, body)
    await db.commit()
    return AuthResponse(
        message="Usuario registrado correctamente",
        user=UserResponse.model_validate(user),
        token=AccessToken(access_token=issue_token(user)),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Login with email + password."""
    user = await authenticate_user(db, body.email, body.password)
    return AuthResponse(
        message="Inicio de sesión exitoso",
        user=UserResponse.model_validate(user),
        token=AccessToken(access_token=issue_token(user)),
    )


@router.get("/me", response_model=MeResponse)
async def me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> MeResponse:
    """Return the authenticated user."""
    user = await require_user(db, principal.id)
    return MeResponse(user=UserResponse.model_validate(user))
