"""Refresh token persistence.

Every method issues a single statement; errors from the database propagate
unchanged.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.features.user.models import User

from .jwt_utils import IdentityClaim
from .models import RefreshToken


class RefreshTokenStore:
    """Refresh token queries bound to one database session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def fetch_by_id(self, token_id: UUID) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.id == token_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def fetch_user_identity(self, token_id: UUID) -> IdentityClaim | None:
        """Look up the owner of a refresh token."""
        stmt = (
            select(User.id, User.email)
            .join(RefreshToken, RefreshToken.user_id == User.id)
            .where(RefreshToken.id == token_id)
        )
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        return IdentityClaim(user_id=row.id, email=row.email)

    async def insert(self, user_id: UUID, expiration: datetime) -> RefreshToken:
        token = RefreshToken(user_id=user_id, expiration_date=expiration, is_available=True)
        self.session.add(token)
        await self.session.flush()
        return token

    async def mark_inactive(self, token_id: UUID, now: datetime) -> RefreshToken | None:
        """Atomically consume a refresh token.

        The row is only updated if it is still available and not expired at
        ``now``. Returns None when no row matched, which includes losing a
        race against a concurrent redemption.
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.id == token_id,
                RefreshToken.is_available.is_(True),
                RefreshToken.expiration_date > now,
            )
            .values(is_available=False)
            .returning(RefreshToken)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_all_inactive_for_user(self, user_id: UUID) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.is_available.is_(True))
            .values(is_available=False)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def delete_expired_or_inactive(self, now: datetime) -> int:
        stmt = (
            delete(RefreshToken)
            .where(or_(RefreshToken.expiration_date < now, RefreshToken.is_available.is_(False)))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
