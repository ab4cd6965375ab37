"""Authentication schemas (DTOs)."""

from pydantic import BaseModel, Field

from streamify.features.user.schemas import UserResponse


# Request schemas
class RegisterRequest(BaseModel):
    """Registration request.

    Username, email and password policy is enforced by the auth service so
    every entry point rejects the same inputs with the same message.
    """

    username: str = Field(..., description="Username (3-30 characters after trimming)")
    email: str = Field(..., description="Email address, stored lowercased")
    password: str = Field(
        ..., description="Password (minimum 8 characters, must include uppercase, lowercase, and digit)"
    )
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)


class LoginRequest(BaseModel):
    """Login request."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


# Response schemas
class TokenResponse(BaseModel):
    """Access token response. The refresh token travels in an HttpOnly cookie."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserResponse


class VerifyResponse(BaseModel):
    """Email verification result."""

    message: str
    user: UserResponse
