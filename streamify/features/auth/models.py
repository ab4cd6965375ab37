"""Authentication models (server-side sessions backing refresh tokens)."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from streamify.database.base import Base, UTCDateTime, utcnow

USER_AGENT_MAX_LENGTH = 500


class UserSession(Base):
    """A login session bound to one opaque refresh token.

    Access tokens carry the session id in their ``sid`` claim; deleting the row
    revokes every access token minted for it.
    """

    __tablename__ = "sessions"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Owner and token
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    refresh_token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Lifetime
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)

    # Client metadata
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)  # IPv6 max length is 45
    user_agent: Mapped[str | None] = mapped_column(String(USER_AGENT_MAX_LENGTH), nullable=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        """A session is usable only while now < expires_at."""
        return (now or utcnow()) >= self.expires_at
