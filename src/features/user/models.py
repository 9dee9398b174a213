"""User domain models."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, UTCDateTime, utc_now


class User(Base):
    """User account created on first OAuth2 login.

    Users are identified by email; the provider's display name becomes the
    username.
    """

    __tablename__ = "users"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Identity (globally unique)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    # Profile
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    about_me: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utc_now,
        nullable=False,
        server_default=func.now(),
    )
