"""Token minting: opaque refresh/verification tokens and signed access tokens."""

import logging
import secrets
from datetime import timedelta
from typing import Any
from uuid import UUID

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from streamify.database.base import utcnow

from .exceptions import InvalidTokenException, TokenExpiredException

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)
REFRESH_TOKEN_BYTES = 64
VERIFICATION_TOKEN_BYTES = 32
VERIFICATION_TOKEN_TTL = timedelta(hours=24)

# Optional claims an access token may carry besides sub/sid/iat/exp
OPTIONAL_CLAIMS = ("role", "email", "first_name", "last_name", "phone_number")
REQUIRED_CLAIMS = ["sub", "sid", "iat", "exp"]


class EntropyUnavailableError(RuntimeError):
    """Raised when the operating system cannot supply secure random bytes."""

    pass


def generate_opaque_token(byte_length: int = REFRESH_TOKEN_BYTES) -> str:
    """Generate a URL-safe token from ``byte_length`` CSPRNG bytes.

    Args:
        byte_length: Number of random bytes before encoding

    Returns:
        URL-safe base64 string (no padding)

    Raises:
        EntropyUnavailableError: If the OS entropy source fails

    """
    try:
        return secrets.token_urlsafe(byte_length)
    except (OSError, NotImplementedError) as exc:
        logger.critical("Secure random source unavailable; refusing to mint tokens", exc_info=True)
        raise EntropyUnavailableError("Secure random source unavailable") from exc


class TokenMinter:
    """Signs and verifies HS256 access tokens.

    The signing secret is injected once at construction and never changes.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", access_ttl: timedelta = ACCESS_TOKEN_TTL):
        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl

    def sign_access_token(
        self,
        user_id: UUID | str,
        session_id: UUID | str,
        ttl: timedelta | None = None,
        **claims: Any,
    ) -> str:
        """Create a signed access token.

        Args:
            user_id: Subject of the token
            session_id: Server-side session the token is bound to
            ttl: Optional lifetime, defaults to the configured access TTL
            **claims: Optional role/profile claims; unknown names and None values are dropped

        Returns:
            Encoded JWT string

        """
        now = utcnow()
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "sid": str(session_id),
            "iat": int(now.timestamp()),
            "exp": int((now + (ttl if ttl is not None else self.access_ttl)).timestamp()),
        }
        for name in OPTIONAL_CLAIMS:
            value = claims.get(name)
            if value is not None:
                payload[name] = value

        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> dict[str, Any]:
        """Decode and verify an access token.

        Raises:
            TokenExpiredException: If ``exp <= now``
            InvalidTokenException: On bad signature, foreign algorithm or missing claims

        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except ExpiredSignatureError as err:
            raise TokenExpiredException() from err
        except InvalidTokenError as err:
            raise InvalidTokenException() from err
