"""User service layer."""

import logging
from datetime import timedelta
from uuid import UUID

from streamify.database.credential_store import CredentialStore
from streamify.features.auth.sessions import SessionManager
from streamify.shared.pagination.pagination import PaginationParams

from .exceptions import UserNotFound
from .models import User

logger = logging.getLogger(__name__)

SOFT_DELETE_RETENTION = timedelta(days=40)


class UserService:
    """Service for user profile operations."""

    def __init__(self, store: CredentialStore, sessions: SessionManager):
        self.store = store
        self.sessions = sessions

    async def get_user(self, user_id: UUID) -> User:
        """Get an active user by ID.

        Raises:
            UserNotFound: If the user does not exist or is soft-deleted

        """
        user = await self.store.get_user_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user

    async def list_users(
        self,
        pagination: PaginationParams,
        username: str | None = None,
        email: str | None = None,
    ) -> tuple[list[User], int]:
        """Get a page of active users.

        Args:
            pagination: PaginationParams with limit and offset
            username: Optional case-insensitive partial match on username
            email: Optional case-insensitive partial match on email

        Returns:
            Tuple of (users, total_count)

        """
        total = await self.store.count_users(username=username, email=email)
        users = await self.store.list_users(
            offset=pagination.offset,
            limit=pagination.limit,
            username=username,
            email=email,
        )
        return users, total

    async def update_profile(self, user_id: UUID, **fields: str | None) -> User:
        """Update profile fields (first/last name, bio, avatar URL, phone number only)."""
        await self.get_user(user_id)
        await self.store.update_user_profile(user_id, **fields)
        return await self.get_user(user_id)

    async def soft_delete_user(self, user_id: UUID) -> None:
        """Mark a user deleted and revoke all of their sessions."""
        await self.get_user(user_id)
        await self.store.soft_delete_user(user_id)
        await self.sessions.revoke_all(user_id)
        logger.info(f"User soft-deleted: {user_id}")

    async def purge_soft_deleted(self, retention: timedelta = SOFT_DELETE_RETENTION) -> int:
        """Hard-delete users soft-deleted longer ago than ``retention``."""
        purged = await self.store.purge_soft_deleted_older_than(retention)
        logger.info(f"Purged {purged} soft-deleted user(s)")
        return purged
