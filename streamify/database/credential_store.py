"""Credential store: the narrow persistence interface used by the auth core.

All user and session reads and writes go through ``CredentialStore`` so the
services never build SQL themselves. SQLAlchemy failures are re-raised as
``StoreError`` tagged with the operation name and non-sensitive identifiers.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from streamify.database.base import utcnow
from streamify.features.auth.models import UserSession
from streamify.features.user.models import User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "bio", "avatar_url", "phone_number")


class StoreError(Exception):
    """Raised when a store operation fails at the database level."""

    def __init__(self, operation: str, **context: Any):
        self.operation = operation
        self.context = context
        details = ", ".join(f"{key}={value}" for key, value in context.items())
        super().__init__(f"{operation} failed" + (f" ({details})" if details else ""))


class DuplicateRecordError(StoreError):
    """Raised when a write violates a unique constraint."""

    pass


def _contains_pattern(value: str) -> str:
    """Build a LIKE pattern matching ``value`` literally anywhere in the column."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CredentialStore:
    """SQLAlchemy-backed store for users and sessions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _operation(self, name: str, **context: Any) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as exc:
            raise DuplicateRecordError(name, **context) from exc
        except SQLAlchemyError as exc:
            raise StoreError(name, **context) from exc

    # Users

    async def get_user_by_email(self, email: str) -> User | None:
        """Look up a non-deleted user by normalized email."""
        async with self._operation("get_user_by_email"):
            stmt = select(User).where(User.email == email, User.deleted_at.is_(None))
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID, include_deleted: bool = False) -> User | None:
        async with self._operation("get_user_by_id", user_id=user_id):
            stmt = select(User).where(User.id == user_id)
            if not include_deleted:
                stmt = stmt.where(User.deleted_at.is_(None))
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def create_user(self, **fields: Any) -> User:
        async with self._operation("create_user"):
            user = User(**fields)
            self.session.add(user)
            await self.session.flush()
            return user

    async def update_user_profile(self, user_id: UUID, **fields: str | None) -> None:
        """Update profile fields; ``None`` values leave the column untouched."""
        values = {key: value for key, value in fields.items() if key in PROFILE_FIELDS and value is not None}
        if not values:
            return
        async with self._operation("update_user_profile", user_id=user_id):
            await self._update_user(user_id, **values)

    async def update_user_role(self, user_id: UUID, role: str) -> None:
        async with self._operation("update_user_role", user_id=user_id):
            await self._update_user(user_id, role=role)

    async def lock_user(self, user_id: UUID) -> None:
        async with self._operation("lock_user", user_id=user_id):
            await self._update_user(user_id, is_locked=True)

    async def unlock_user(self, user_id: UUID) -> None:
        async with self._operation("unlock_user", user_id=user_id):
            await self._update_user(user_id, is_locked=False)

    async def soft_delete_user(self, user_id: UUID) -> None:
        async with self._operation("soft_delete_user", user_id=user_id):
            await self._update_user(user_id, deleted_at=utcnow())

    async def purge_soft_deleted_older_than(self, window: timedelta) -> int:
        """Hard-delete users soft-deleted before ``now - window``, with their sessions."""
        cutoff = utcnow() - window
        async with self._operation("purge_soft_deleted_older_than"):
            expired_ids = select(User.id).where(User.deleted_at.is_not(None), User.deleted_at < cutoff)
            await self.session.execute(delete(UserSession).where(UserSession.user_id.in_(expired_ids)))
            result = await self.session.execute(
                delete(User).where(User.deleted_at.is_not(None), User.deleted_at < cutoff)
            )
            return result.rowcount or 0

    async def get_user_by_verification_token(self, token: str) -> User | None:
        async with self._operation("get_user_by_verification_token"):
            stmt = select(User).where(User.verification_token == token, User.deleted_at.is_(None))
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def mark_user_verified(self, user_id: UUID) -> None:
        async with self._operation("mark_user_verified", user_id=user_id):
            await self._update_user(
                user_id,
                is_verified=True,
                verification_token=None,
                verification_expires_at=None,
            )

    async def list_users(
        self,
        offset: int = 0,
        limit: int | None = None,
        username: str | None = None,
        email: str | None = None,
    ) -> list[User]:
        async with self._operation("list_users"):
            stmt = self._filter_users(select(User), username, email).order_by(User.created_at, User.id)
            stmt = stmt.offset(offset)
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def count_users(self, username: str | None = None, email: str | None = None) -> int:
        async with self._operation("count_users"):
            stmt = self._filter_users(select(func.count()).select_from(User), username, email)
            result = await self.session.execute(stmt)
            return result.scalar_one()

    @staticmethod
    def _filter_users(stmt, username: str | None, email: str | None):
        stmt = stmt.where(User.deleted_at.is_(None))
        if username:
            stmt = stmt.where(User.username.ilike(_contains_pattern(username), escape="\\"))
        if email:
            stmt = stmt.where(User.email.ilike(_contains_pattern(email), escape="\\"))
        return stmt

    async def _update_user(self, user_id: UUID, **values: Any) -> None:
        stmt = update(User).where(User.id == user_id).values(updated_at=utcnow(), **values)
        await self.session.execute(stmt)

    # Sessions

    async def create_session(
        self,
        user_id: UUID,
        refresh_token: str,
        expires_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> UserSession:
        async with self._operation("create_session", user_id=user_id):
            user_session = UserSession(
                user_id=user_id,
                refresh_token=refresh_token,
                expires_at=expires_at,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            self.session.add(user_session)
            await self.session.flush()
            return user_session

    async def get_session_by_id(self, session_id: UUID) -> UserSession | None:
        async with self._operation("get_session_by_id", session_id=session_id):
            result = await self.session.execute(select(UserSession).where(UserSession.id == session_id))
            return result.scalar_one_or_none()

    async def get_session_by_token(self, refresh_token: str) -> UserSession | None:
        async with self._operation("get_session_by_token"):
            result = await self.session.execute(select(UserSession).where(UserSession.refresh_token == refresh_token))
            return result.scalar_one_or_none()

    async def delete_session_by_id(self, session_id: UUID) -> bool:
        """Delete one session. Returns False when no row was affected."""
        async with self._operation("delete_session_by_id", session_id=session_id):
            result = await self.session.execute(delete(UserSession).where(UserSession.id == session_id))
            return (result.rowcount or 0) > 0

    async def delete_session_by_token(self, refresh_token: str) -> bool:
        async with self._operation("delete_session_by_token"):
            result = await self.session.execute(delete(UserSession).where(UserSession.refresh_token == refresh_token))
            return (result.rowcount or 0) > 0

    async def delete_all_sessions_for_user(self, user_id: UUID) -> int:
        async with self._operation("delete_all_sessions_for_user", user_id=user_id):
            result = await self.session.execute(delete(UserSession).where(UserSession.user_id == user_id))
            return result.rowcount or 0
