"""Server-side refresh sessions: issue, validate, rotate and revoke."""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from streamify.database.base import utcnow
from streamify.database.credential_store import CredentialStore

from .exceptions import RefreshTokenExpiredException, RefreshTokenNotFoundException, SessionInvalidException
from .models import UserSession
from .tokens import REFRESH_TOKEN_BYTES, REFRESH_TOKEN_TTL, generate_opaque_token

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the lifecycle of refresh sessions.

    A session row is the server-side anchor for both the opaque refresh token
    and every access token minted against it (via the ``sid`` claim). Deleting
    the row revokes both.
    """

    def __init__(
        self,
        store: CredentialStore,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
        token_bytes: int = REFRESH_TOKEN_BYTES,
    ):
        self.store = store
        self.refresh_ttl = refresh_ttl
        self.token_bytes = token_bytes

    async def create_session(
        self,
        user_id: UUID,
        refresh_token: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
        expires_at: datetime | None = None,
    ) -> UserSession:
        """Persist a session for an already generated refresh token.

        The session expires at ``expires_at``, or one refresh TTL from now when omitted.
        """
        if expires_at is None:
            expires_at = utcnow() + self.refresh_ttl
        return await self.store.create_session(
            user_id=user_id,
            refresh_token=refresh_token,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def issue(
        self,
        user_id: UUID,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[UserSession, str]:
        """Generate a fresh refresh token and open a session for it.

        Returns:
            Tuple of (session, plaintext refresh token)

        """
        refresh_token = generate_opaque_token(self.token_bytes)
        user_session = await self.create_session(user_id, refresh_token, ip_address, user_agent)
        logger.info(f"Session {user_session.id} issued for user {user_id}")
        return user_session, refresh_token

    async def get_by_token(self, refresh_token: str) -> UserSession | None:
        return await self.store.get_session_by_token(refresh_token)

    async def get_by_id(self, session_id: UUID) -> UserSession | None:
        return await self.store.get_session_by_id(session_id)

    @staticmethod
    def is_expired(user_session: UserSession, now: datetime | None = None) -> bool:
        return user_session.is_expired(now)

    async def validate(self, session_id: UUID) -> UserSession:
        """Return the live session behind an access token.

        Expired rows are removed on sight.

        Raises:
            SessionInvalidException: If the session is gone or expired

        """
        user_session = await self.store.get_session_by_id(session_id)
        if user_session is None:
            raise SessionInvalidException()
        if user_session.is_expired():
            await self.store.delete_session_by_id(session_id)
            raise SessionInvalidException()
        return user_session

    async def rotate(
        self,
        old_session: UserSession,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[UserSession, str]:
        """Replace a session with a new one carrying a new refresh token.

        The old row is deleted before the new one is written. If the delete
        affects no rows, another request already consumed the token and the
        rotation is aborted without issuing anything.

        Raises:
            RefreshTokenExpiredException: If the old session has expired
            RefreshTokenNotFoundException: If the old session was already consumed

        """
        if old_session.is_expired():
            await self.store.delete_session_by_id(old_session.id)
            raise RefreshTokenExpiredException()

        user_id = old_session.user_id
        if not await self.store.delete_session_by_id(old_session.id):
            logger.warning(f"Refresh token for session {old_session.id} was already rotated or revoked")
            raise RefreshTokenNotFoundException()

        return await self.issue(user_id, ip_address, user_agent)

    async def revoke(self, session_id: UUID) -> bool:
        return await self.store.delete_session_by_id(session_id)

    async def revoke_by_token(self, refresh_token: str) -> bool:
        return await self.store.delete_session_by_token(refresh_token)

    async def revoke_all(self, user_id: UUID) -> int:
        """Delete every session of a user. Returns the number removed."""
        count = await self.store.delete_all_sessions_for_user(user_id)
        logger.info(f"Revoked {count} session(s) for user {user_id}")
        return count
