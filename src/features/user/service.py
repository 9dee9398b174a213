"""User service layer."""

import logging
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 50


class UserService:
    """Service for user operations."""

    @staticmethod
    async def get_user(session: AsyncSession, user_id: UUID) -> User | None:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
        """Get user by email."""
        stmt = select(User).where(User.email == email)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def _available_username(session: AsyncSession, wanted: str) -> str:
        username = wanted[:USERNAME_MAX_LENGTH]
        stmt = select(User.id).where(User.username == username)
        if (await session.execute(stmt)).first() is None:
            return username

        suffix = uuid4().hex[:8]
        return f"{username[: USERNAME_MAX_LENGTH - len(suffix) - 1]}-{suffix}"

    @staticmethod
    async def find_or_create(
        session: AsyncSession, email: str, username: str | None = None, avatar_url: str | None = None
    ) -> User:
        """Return the user registered under ``email``, creating it on first login.

        Args:
            session: Database session
            email: Email reported by the OAuth provider
            username: Display name; falls back to the local part of the email
            avatar_url: Optional profile picture URL

        Returns:
            Existing or newly created User

        """
        user = await UserService.get_user_by_email(session, email)
        if user is not None:
            logger.info(f"Found existing user {user.id}")
            return user

        wanted = (username or "").strip() or email.split("@", 1)[0]
        user = User(
            email=email,
            username=await UserService._available_username(session, wanted),
            avatar_url=avatar_url or None,
        )
        session.add(user)
        await session.flush()

        logger.info(f"Created user {user.id} ({user.email})")
        return user

    @staticmethod
    async def update_about(session: AsyncSession, user: User, about: str) -> User:
        """Replace the user's "about me" text."""
        user.about_me = about
        await session.flush()
        logger.info(f"Updated profile of user {user.id}")
        return user
