"""Authentication router (registration, login and session endpoints)."""

import logging

from fastapi import APIRouter, Cookie, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from streamify.config.settings import settings
from streamify.database.dependencies import get_db_session
from streamify.features.user.schemas import MessageResponse, UserResponse
from streamify.shared.rate_limit import limiter

from .dependencies import Principal, get_auth_service, get_current_principal, get_optional_principal
from .exceptions import RefreshTokenMissingException
from .models import USER_AGENT_MAX_LENGTH
from .schemas import LoginRequest, RegisterRequest, TokenResponse, VerifyResponse
from .service import AuthService, LoginResult

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])

REFRESH_COOKIE_NAME = "refresh_token"


def _client_info(request: Request) -> tuple[str | None, str | None]:
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    if user_agent is not None:
        user_agent = user_agent[:USER_AGENT_MAX_LENGTH]
    return ip_address, user_agent


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=int(settings.refresh_token_ttl.total_seconds()),
        path="/",
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite="strict",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite="strict",
    )


def _token_response(result: LoginResult, response: Response) -> TokenResponse:
    _set_refresh_cookie(response, result.refresh_token)
    return TokenResponse(
        access_token=result.access_token,
        expires_in=int(settings.access_token_ttl.total_seconds()),
        user=UserResponse.model_validate(result.user),
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Register a new account.

    - **username**: 3-30 characters
    - **email**: Valid email address (stored lowercased)
    - **password**: Minimum 8 characters, must include uppercase, lowercase, and digit

    The account starts unverified; the verification link is delivered out of band.
    """
    user = await auth_service.register(
        username=data.username,
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
    )
    await session.commit()
    return UserResponse.model_validate(user)


@router.get("/verify", response_model=VerifyResponse)
async def verify_email(
    token: str = Query(..., min_length=1),
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Redeem an email verification token."""
    user = await auth_service.verify_email(token)
    await session.commit()
    return VerifyResponse(message="Email verified successfully", user=UserResponse.model_validate(user))


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Login with email and password.

    Returns the access token in the body and sets the refresh token as an
    HttpOnly cookie.
    """
    ip_address, user_agent = _client_info(request)
    result = await auth_service.login(data.email, data.password, ip_address, user_agent)
    await session.commit()
    return _token_response(result, response)


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def refresh(
    request: Request,
    response: Response,
    refresh_token: str | None = Cookie(None, alias=REFRESH_COOKIE_NAME),
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Rotate the refresh cookie and issue a new access token.

    The presented refresh token is consumed; replaying it fails.
    """
    if not refresh_token:
        raise RefreshTokenMissingException()

    ip_address, user_agent = _client_info(request)
    result = await auth_service.refresh(refresh_token, ip_address, user_agent)
    await session.commit()
    return _token_response(result, response)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    refresh_token: str | None = Cookie(None, alias=REFRESH_COOKIE_NAME),
    principal: Principal | None = Depends(get_optional_principal),
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Logout the current session.

    Uses the session behind the bearer token when present, otherwise the
    refresh cookie. Always clears the cookie and never fails on an
    already-revoked session.
    """
    session_id = principal.session_id if principal else None
    revoked = await auth_service.logout(session_id=session_id, refresh_token=refresh_token)
    await session.commit()
    _clear_refresh_cookie(response)

    if revoked:
        logger.info(f"User logged out: {principal.user_id if principal else 'cookie session'}")
    return MessageResponse(message="Successfully logged out")


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    response: Response,
    principal: Principal = Depends(get_current_principal),
    auth_service: AuthService = Depends(get_auth_service),
    session: AsyncSession = Depends(get_db_session),
):
    """Revoke every session of the current user on all devices."""
    await auth_service.logout_all(principal.user_id)
    await session.commit()
    _clear_refresh_cookie(response)
    return MessageResponse(message="Logged out from all devices")
