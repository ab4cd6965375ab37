"""User management router (API endpoints)."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from streamify.config.settings import settings
from streamify.database.dependencies import get_db_session
from streamify.features.auth.dependencies import Principal, get_auth_service, get_current_principal, require_role
from streamify.features.auth.service import AuthService
from streamify.shared.pagination.pagination import PaginationParams

from .dependencies import get_user_service
from .exceptions import CannotDeleteOwnAccount
from .models import UserRole
from .schemas import (
    MessageResponse,
    PurgeResponse,
    UpdateRoleRequest,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)
from .service import UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["User Management"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    principal: Principal = Depends(get_current_principal),
    user_service: UserService = Depends(get_user_service),
):
    """Get current user information."""
    user = await user_service.get_user(principal.user_id)
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
async def update_current_user(
    data: UserUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    user_service: UserService = Depends(get_user_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Update current user's own profile (first/last name, bio, avatar URL, phone number)."""
    user = await user_service.update_profile(principal.user_id, **data.model_dump(exclude_unset=True))
    await session.commit()
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse, dependencies=[Depends(get_current_principal)])
async def list_users(
    pagination: PaginationParams = Depends(),
    username: str | None = Query(None, max_length=30, description="Case-insensitive partial match"),
    email: str | None = Query(None, max_length=255, description="Case-insensitive partial match"),
    user_service: UserService = Depends(get_user_service),
):
    """List active users.

    - `limit`: Items per page (default: 20, max: 100)
    - `offset`: Number of users to skip (default: 0)
    """
    users, total = await user_service.list_users(pagination, username=username, email=email)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        has_more=pagination.has_more(len(users), total),
    )


# Admin endpoints
# Declared before /{user_id} so the literal path wins
@router.delete("/old-soft-deleted", response_model=PurgeResponse, dependencies=[Depends(require_role(UserRole.ADMIN))])
async def purge_soft_deleted_users(
    user_service: UserService = Depends(get_user_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Permanently delete users soft-deleted longer ago than the retention window (admin only)."""
    purged = await user_service.purge_soft_deleted(settings.soft_delete_retention)
    await session.commit()
    return PurgeResponse(message="Old soft-deleted users purged", purged=purged)


@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(get_current_principal)])
async def get_user(user_id: UUID, user_service: UserService = Depends(get_user_service)):
    """Get user by ID."""
    user = await user_service.get_user(user_id)
    return UserResponse.model_validate(user)


@router.put("/{user_id}/role", response_model=MessageResponse)
async def update_user_role(
    user_id: UUID,
    data: UpdateRoleRequest,
    admin: Principal = Depends(require_role(UserRole.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Change a user's role (admin only). ``owner`` cannot be assigned."""
    await auth_service.update_role(user_id, data.role)
    await session.commit()
    logger.info(f"Role of {user_id} set to {data.role} by admin {admin.user_id}")
    return MessageResponse(message="User role updated successfully")


@router.post("/{user_id}/lock", response_model=MessageResponse)
async def lock_user(
    user_id: UUID,
    admin: Principal = Depends(require_role(UserRole.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Lock a user account and revoke all of its sessions (admin only)."""
    await auth_service.lock_account(user_id)
    await session.commit()
    logger.info(f"User {user_id} locked by admin {admin.user_id}")
    return MessageResponse(message="User locked successfully")


@router.post("/{user_id}/unlock", response_model=MessageResponse)
async def unlock_user(
    user_id: UUID,
    admin: Principal = Depends(require_role(UserRole.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Unlock a user account (admin only)."""
    await auth_service.unlock_account(user_id)
    await session.commit()
    logger.info(f"User {user_id} unlocked by admin {admin.user_id}")
    return MessageResponse(message="User unlocked successfully")


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    admin: Principal = Depends(require_role(UserRole.ADMIN)),
    user_service: UserService = Depends(get_user_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Soft-delete a user and revoke their sessions (admin only)."""
    if admin.user_id == user_id:
        raise CannotDeleteOwnAccount()

    await user_service.soft_delete_user(user_id)
    await session.commit()

    logger.info(f"User deleted by admin {admin.user_id}: {user_id}")
    return MessageResponse(message="User deleted successfully")
