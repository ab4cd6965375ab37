"""Authentication exceptions."""

from fastapi import HTTPException, status


class AuthenticationException(HTTPException):
    """Base authentication exception."""

    def __init__(self, detail: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidCredentialsException(AuthenticationException):
    """Raised when email or password is incorrect.

    Unknown email and wrong password share this message so the response
    does not reveal which one failed.
    """

    def __init__(self):
        super().__init__(detail="Invalid email or password")


class AccountLockedException(AuthenticationException):
    """Raised when a locked account attempts to log in."""

    def __init__(self):
        super().__init__(detail="User account is locked")


class NotVerifiedException(AuthenticationException):
    """Raised when an unverified account attempts to log in."""

    def __init__(self):
        super().__init__(detail="Please verify your email before logging in")


class MissingCredentialsException(AuthenticationException):
    """Raised when no bearer token is supplied."""

    def __init__(self):
        super().__init__(detail="Authorization header must be Bearer {token}")


class InvalidTokenException(AuthenticationException):
    """Raised when a token is malformed, tampered with or unknown."""

    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(detail=detail)


class TokenExpiredException(InvalidTokenException):
    """Raised when a token has expired; clients should use the refresh flow."""

    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail=detail)


class SessionInvalidException(InvalidTokenException):
    """Raised when the session referenced by an access token is gone or expired."""

    def __init__(self):
        super().__init__(detail="Session is invalid or expired")


class RefreshTokenMissingException(InvalidTokenException):
    """Raised when the refresh cookie is absent."""

    def __init__(self):
        super().__init__(detail="Refresh token missing")


class RefreshTokenNotFoundException(InvalidTokenException):
    """Raised when a refresh token is unknown, revoked or already rotated."""

    def __init__(self):
        super().__init__(detail="Invalid session")


class RefreshTokenExpiredException(TokenExpiredException):
    """Raised when the session behind a refresh token has expired."""

    def __init__(self):
        super().__init__(detail="Session expired")


class InsufficientRoleException(HTTPException):
    """Raised when the caller lacks the required role."""

    def __init__(self, required_roles: list[str]):
        roles_str = ", ".join(required_roles)
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User does not have required role(s): {roles_str}",
        )
