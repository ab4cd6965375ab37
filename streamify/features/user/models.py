"""User domain models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Enum, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from streamify.database.base import Base, TimestampMixin, UTCDateTime


class UserRole(StrEnum):
    """User roles.

    USER: Default role assigned at registration.
    CUSTOMER: Paying listener.
    ADMIN: Can manage accounts (lock, unlock, delete, change roles).
    OWNER: Platform owner. Seeded out of band, never assignable through the API.
    """

    USER = "user"
    CUSTOMER = "customer"
    ADMIN = "admin"
    OWNER = "owner"


# Roles an administrator may assign (OWNER excluded)
ASSIGNABLE_ROLES: frozenset[UserRole] = frozenset({UserRole.USER, UserRole.CUSTOMER, UserRole.ADMIN})


class User(Base, TimestampMixin):
    """User model for authentication and profile data."""

    __tablename__ = "users"
    __table_args__ = (
        # Email is unique among accounts that have not been soft-deleted
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Identity
    username: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Authentication
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Email verification
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    verification_token: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    verification_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Account state
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    role: Mapped[str] = mapped_column(
        Enum(UserRole, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER.value,
        server_default=UserRole.USER.value,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True, index=True)

    # Profile
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    def token_claims(self) -> dict[str, str | None]:
        """Profile claims embedded in access tokens."""
        return {
            "role": str(self.role),
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
        }
