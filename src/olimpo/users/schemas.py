"""Request/response schemas for user endpoints.

Re-exports from auth schemas for convenience.
"""

from olimpo.auth.schemas import (
    MessageResponse,
    Role,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)

__all__ = [
    "MessageResponse",
    "Role",
    "UserCreateRequest",
    "UserResponse",
    "UserUpdateRequest",
]
