"""Authentication service layer."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from streamify.database.base import utcnow
from streamify.database.credential_store import CredentialStore, DuplicateRecordError
from streamify.features.user.exceptions import (
    EmailAlreadyExists,
    InvalidRoleException,
    UserNotFound,
    UserValidationError,
)
from streamify.features.user.models import ASSIGNABLE_ROLES, User, UserRole
from streamify.shared.validators.email import normalize_email, validate_email_address
from streamify.shared.validators.password import validate_password_strength
from streamify.shared.validators.username import validate_username

from .exceptions import (
    AccountLockedException,
    InvalidCredentialsException,
    InvalidTokenException,
    NotVerifiedException,
    RefreshTokenNotFoundException,
    TokenExpiredException,
)
from .models import UserSession
from .passwords import PasswordHasher
from .sessions import SessionManager
from .tokens import VERIFICATION_TOKEN_BYTES, VERIFICATION_TOKEN_TTL, TokenMinter, generate_opaque_token

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Outcome of a successful login or refresh."""

    user: User
    access_token: str
    refresh_token: str
    session: UserSession


class AuthService:
    """Orchestrates registration, login, token refresh and account state changes."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        minter: TokenMinter,
        sessions: SessionManager,
        verification_ttl: timedelta = VERIFICATION_TOKEN_TTL,
        verification_token_bytes: int = VERIFICATION_TOKEN_BYTES,
    ):
        self.store = store
        self.hasher = hasher
        self.minter = minter
        self.sessions = sessions
        self.verification_ttl = verification_ttl
        self.verification_token_bytes = verification_token_bytes

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Create an unverified account.

        Args:
            username: Display name, 3-30 characters after trimming
            email: Email address, stored trimmed and lowercased
            password: Plain text password, hashed before storage
            first_name: Optional profile field
            last_name: Optional profile field

        Returns:
            The new user, carrying its pending verification token

        Raises:
            UserValidationError: If any field violates policy
            EmailAlreadyExists: If an active account holds the email

        """
        try:
            username = validate_username(username)
            email = validate_email_address(email)
            validate_password_strength(password)
        except ValueError as err:
            raise UserValidationError(str(err)) from err

        if await self.store.get_user_by_email(email):
            raise EmailAlreadyExists()

        password_hash = self.hasher.hash(password)
        verification_token = generate_opaque_token(self.verification_token_bytes)

        try:
            user = await self.store.create_user(
                username=username,
                email=email,
                password_hash=password_hash,
                is_verified=False,
                verification_token=verification_token,
                verification_expires_at=utcnow() + self.verification_ttl,
                first_name=first_name,
                last_name=last_name,
            )
        except DuplicateRecordError as err:
            # A concurrent registration claimed the email after the lookup above
            raise EmailAlreadyExists() from err
        logger.info(f"User registered: {user.id}")
        return user

    async def verify_email(self, token: str) -> User:
        """Redeem a verification token.

        Raises:
            InvalidTokenException: If no account holds the token
            TokenExpiredException: If the token's validity window has passed

        """
        user = await self.store.get_user_by_verification_token(token)
        if user is None:
            raise InvalidTokenException(detail="Invalid verification token")

        if user.verification_expires_at is None or utcnow() >= user.verification_expires_at:
            raise TokenExpiredException(detail="Verification token has expired")

        await self.store.mark_user_verified(user.id)
        logger.info(f"User verified: {user.id}")
        return user

    async def login(
        self,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResult:
        """Authenticate by email and password and open a session.

        Locked and unverified accounts are rejected before the password is
        checked. Unknown email and wrong password share one error.
        """
        user = await self.store.get_user_by_email(normalize_email(email))
        if user is None:
            raise InvalidCredentialsException()

        if user.is_locked:
            logger.warning(f"Login attempt for locked account: {user.id}")
            raise AccountLockedException()

        if not user.is_verified:
            logger.warning(f"Login attempt for unverified account: {user.id}")
            raise NotVerifiedException()

        if not self.hasher.verify(password, user.password_hash):
            logger.warning(f"Failed login attempt for user: {user.id}")
            raise InvalidCredentialsException()

        user_session, refresh_token = await self.sessions.issue(user.id, ip_address, user_agent)
        logger.info(f"User logged in: {user.id}")
        return self._login_result(user, user_session, refresh_token)

    async def refresh(
        self,
        refresh_token: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResult:
        """Exchange a refresh token for a new session and token pair.

        Raises:
            RefreshTokenNotFoundException: If the token is unknown or already consumed
            RefreshTokenExpiredException: If the session behind it has expired
            InvalidTokenException: If the owning account is gone or locked

        """
        old_session = await self.sessions.get_by_token(refresh_token)
        if old_session is None:
            raise RefreshTokenNotFoundException()

        new_session, new_refresh_token = await self.sessions.rotate(old_session, ip_address, user_agent)

        user = await self.store.get_user_by_id(new_session.user_id)
        if user is None or user.is_locked:
            await self.sessions.revoke(new_session.id)
            raise InvalidTokenException(detail="User not found or inactive")

        return self._login_result(user, new_session, new_refresh_token)

    async def logout(self, session_id: UUID | None = None, refresh_token: str | None = None) -> bool:
        """Revoke the caller's session. Returns True if anything was removed.

        The session id from a verified access token is tried first, then the
        refresh token. Absence of a matching session is not an error.
        """
        revoked = False
        if session_id is not None:
            revoked = await self.sessions.revoke(session_id)
        if refresh_token:
            revoked = await self.sessions.revoke_by_token(refresh_token) or revoked
        return revoked

    async def logout_all(self, user_id: UUID) -> int:
        return await self.sessions.revoke_all(user_id)

    async def lock_account(self, user_id: UUID) -> int:
        """Lock an account and revoke every session it holds.

        Returns:
            Number of sessions revoked

        """
        await self._require_user(user_id)
        await self.store.lock_user(user_id)
        revoked = await self.sessions.revoke_all(user_id)
        logger.info(f"User locked: {user_id} ({revoked} session(s) revoked)")
        return revoked

    async def unlock_account(self, user_id: UUID) -> None:
        await self._require_user(user_id)
        await self.store.unlock_user(user_id)
        logger.info(f"User unlocked: {user_id}")

    async def update_role(self, user_id: UUID, new_role: str) -> None:
        """Change a user's role.

        Only ``user``, ``customer`` and ``admin`` can be assigned; ``owner``
        and unknown values are rejected.
        """
        try:
            role = UserRole(new_role)
        except ValueError as err:
            raise InvalidRoleException() from err
        if role not in ASSIGNABLE_ROLES:
            raise InvalidRoleException()

        await self._require_user(user_id)
        await self.store.update_user_role(user_id, role)
        logger.info(f"Role of user {user_id} changed to {role.value}")

    async def _require_user(self, user_id: UUID) -> User:
        user = await self.store.get_user_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user

    def _login_result(self, user: User, user_session: UserSession, refresh_token: str) -> LoginResult:
        access_token = self.minter.sign_access_token(user.id, user_session.id, **user.token_claims())
        return LoginResult(
            user=user,
            access_token=access_token,
            refresh_token=refresh_token,
            session=user_session,
        )
