"""Authentication dependencies for FastAPI."""

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from streamify.config.settings import settings
from streamify.database.credential_store import CredentialStore
from streamify.database.dependencies import get_db_session
from streamify.features.user.models import UserRole

from .exceptions import InsufficientRoleException, InvalidTokenException, MissingCredentialsException
from .passwords import PasswordHasher
from .service import AuthService
from .sessions import SessionManager
from .tokens import TokenMinter

security = HTTPBearer(auto_error=False)

_password_hasher = PasswordHasher()


@dataclass(frozen=True)
class Principal:
    """Identity of an authenticated caller, taken from a verified access token."""

    user_id: UUID
    session_id: UUID
    role: str | None = None
    email: str | None = None


def get_credential_store(session: AsyncSession = Depends(get_db_session)) -> CredentialStore:
    return CredentialStore(session)


def get_password_hasher() -> PasswordHasher:
    return _password_hasher


def get_token_minter() -> TokenMinter:
    return TokenMinter(
        secret=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        access_ttl=settings.access_token_ttl,
    )


def get_session_manager(store: CredentialStore = Depends(get_credential_store)) -> SessionManager:
    return SessionManager(
        store,
        refresh_ttl=settings.refresh_token_ttl,
        token_bytes=settings.refresh_token_bytes,
    )


def get_auth_service(
    store: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    minter: TokenMinter = Depends(get_token_minter),
    sessions: SessionManager = Depends(get_session_manager),
) -> AuthService:
    return AuthService(
        store,
        hasher,
        minter,
        sessions,
        verification_ttl=settings.verification_token_ttl,
        verification_token_bytes=settings.verification_token_bytes,
    )


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    minter: TokenMinter = Depends(get_token_minter),
    sessions: SessionManager = Depends(get_session_manager),
) -> Principal:
    """Authenticate the caller from the bearer access token.

    The token's signature and expiry are checked first, then the session it
    references is re-read so server-side revocation takes effect immediately.

    Raises:
        MissingCredentialsException: If no bearer token is supplied
        TokenExpiredException: If the access token has expired
        InvalidTokenException: If the token is malformed or tampered with
        SessionInvalidException: If the referenced session is gone or expired

    """
    if credentials is None:
        raise MissingCredentialsException()

    claims = minter.verify_access_token(credentials.credentials)
    try:
        user_id = UUID(claims["sub"])
        session_id = UUID(claims["sid"])
    except (TypeError, ValueError) as err:
        raise InvalidTokenException() from err

    user_session = await sessions.validate(session_id)
    if user_session.user_id != user_id:
        raise InvalidTokenException()

    return Principal(
        user_id=user_id,
        session_id=session_id,
        role=claims.get("role"),
        email=claims.get("email"),
    )


async def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    minter: TokenMinter = Depends(get_token_minter),
    sessions: SessionManager = Depends(get_session_manager),
) -> Principal | None:
    """Get the caller's principal if a valid token is provided, otherwise None.

    Useful for endpoints that work with or without authentication.
    """
    if credentials is None:
        return None

    try:
        return await get_current_principal(credentials, minter, sessions)
    except InvalidTokenException:
        return None


def require_role(*required_roles: UserRole):
    """Dependency factory to require specific roles.

    The role claim must equal one of the listed roles; there is no hierarchy.

    Usage:
        Depends(require_role(UserRole.ADMIN))
    """

    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in {role.value for role in required_roles}:
            raise InsufficientRoleException([role.value for role in required_roles])
        return principal

    return role_checker
