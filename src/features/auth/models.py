"""Authentication models (refresh token rows)."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, UTCDateTime


class RefreshToken(Base):
    """Single-use refresh token.

    A row is usable while ``is_available`` is true and ``expiration_date`` is
    in the future. Redemption flips ``is_available`` to false.
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    expiration_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
