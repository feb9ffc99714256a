"""Request/response schemas for authentication and user endpoints."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from olimpo.auth.password import validate_password_strength


class Role(StrEnum):
    USER = "user"
    ADMIN = "admin"


def _normalize_email(v: str) -> str:
    return v.lower().strip()


def _strong_password(v: str) -> str:
    validate_password_strength(v)
    return v


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Self-service registration."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(..., max_length=128)
    confirm_password: str = Field(..., alias="confirmPassword", max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=6, max_length=32)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _strong_password(v)


class LoginRequest(BaseModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)


class UserResponse(BaseModel):
    """Safe user view: never includes the password hash."""

    model_config = {"from_attributes": True}

    id: str
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    is_admin: bool
    role: Role = Role.USER
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    """Returned by register and login."""

    message: str
    user: UserResponse
    token: AccessToken


class MeResponse(BaseModel):
    user: UserResponse


# ---------------------------------------------------------------------------
# User management
# ---------------------------------------------------------------------------


class UserCreateRequest(BaseModel):
    """Admin-created account."""

    email: EmailStr
    password: str = Field(..., max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=32)
    is_admin: bool = False
    role: Role = Role.USER

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _strong_password(v)


class UserUpdateRequest(BaseModel):
    """Partial update; is_admin and role are only honoured for admins."""

    email: EmailStr | None = None
    password: str | None = Field(None, max_length=128)
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=32)
    is_admin: bool | None = None
    role: Role | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v) if v is not None else None

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str | None) -> str | None:
        return _strong_password(v) if v is not None else None


class MessageResponse(BaseModel):
    message: str
