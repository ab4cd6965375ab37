"""User schemas (DTOs)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import UserRole


# Request schemas
class UserUpdateRequest(BaseModel):
    """Profile update request. Omitted fields are left unchanged."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=2000)
    avatar_url: str | None = Field(None, max_length=500)
    phone_number: str | None = Field(None, max_length=32)


class UpdateRoleRequest(BaseModel):
    """Role change request (admin only).

    Kept as a plain string so unknown roles reach the service and get the
    same rejection as ``owner``.
    """

    role: str = Field(..., min_length=1, max_length=20)


# Response schemas
class UserResponse(BaseModel):
    """User response."""

    id: UUID
    username: str
    email: str
    role: UserRole
    is_verified: bool
    is_locked: bool
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    phone_number: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    """User list response."""

    users: list[UserResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class PurgeResponse(MessageResponse):
    """Result of purging soft-deleted users."""

    purged: int
