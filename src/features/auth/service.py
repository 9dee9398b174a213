"""Token service: access token issuance and refresh token rotation."""

import logging
from datetime import timedelta
from uuid import UUID

from .exceptions import InvalidRefreshTokenError
from .jwt_utils import Clock, IdentityClaim, TokenCodec, utc_now
from .models import RefreshToken
from .schemas import TokenResponse
from .store import RefreshTokenStore

logger = logging.getLogger(__name__)


class TokenService:
    """Issue access tokens and manage single-use refresh tokens.

    Refresh token rows are only read and written through the store; nothing is
    cached between calls.

    Args:
        codec: Access token codec
        store: Refresh token store bound to the current session
        access_token_lifetime: Validity window of access tokens
        refresh_token_lifetime: Validity window of refresh tokens
        clock: Time source for expiration computations

    """

    def __init__(
        self,
        codec: TokenCodec,
        store: RefreshTokenStore,
        access_token_lifetime: timedelta,
        refresh_token_lifetime: timedelta,
        clock: Clock = utc_now,
    ):
        self.codec = codec
        self.store = store
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self._clock = clock

    def issue_access_token(self, user_id: UUID, email: str) -> str:
        """Mint an access token for the given identity.

        Raises:
            TokenSigningError: If signing fails

        """
        return self.codec.mint(IdentityClaim(user_id=user_id, email=email), self.access_token_lifetime)

    def decode_access_token(self, token: str) -> IdentityClaim:
        """Validate an access token and return its identity."""
        return self.codec.decode(token)

    async def create_refresh_token(self, user_id: UUID) -> RefreshToken:
        """Persist a new refresh token for ``user_id``."""
        expiration = self._clock() + self.refresh_token_lifetime
        token = await self.store.insert(user_id, expiration)
        logger.info(f"Created refresh token {token.id} for user {user_id} (expires {expiration.isoformat()})")
        return token

    async def redeem_refresh_token(self, token_id: UUID) -> IdentityClaim:
        """Consume a refresh token and return the identity of its owner.

        A token can be redeemed once. The availability check and the
        inactivation happen in a single conditional update, so of two
        concurrent redemptions exactly one succeeds.

        Raises:
            InvalidRefreshTokenError: Unknown, expired, or already used token

        """
        now = self._clock()

        token = await self.store.fetch_by_id(token_id)
        if token is None:
            logger.warning(f"Refresh token {token_id} not found")
            raise InvalidRefreshTokenError(token_id, "refresh token not found")

        if token.expiration_date <= now:
            logger.warning(f"Refresh token {token_id} expired at {token.expiration_date.isoformat()}")
            raise InvalidRefreshTokenError(token_id, "refresh token expired")

        if not token.is_available:
            logger.warning(f"Refresh token {token_id} is no longer available")
            raise InvalidRefreshTokenError(token_id, "refresh token already used")

        identity = await self.store.fetch_user_identity(token_id)
        if identity is None:
            logger.warning(f"Owner of refresh token {token_id} not found")
            raise InvalidRefreshTokenError(token_id, "refresh token owner not found")

        consumed = await self.store.mark_inactive(token_id, now)
        if consumed is None:
            logger.warning(f"Refresh token {token_id} was consumed concurrently")
            raise InvalidRefreshTokenError(token_id, "refresh token already used")

        logger.info(f"Redeemed refresh token {token_id} for user {identity.user_id}")
        return identity

    async def rotate_refresh_token(self, token_id: UUID) -> TokenResponse:
        """Redeem a refresh token and issue a fresh access/refresh token pair."""
        identity = await self.redeem_refresh_token(token_id)
        access_token = self.issue_access_token(identity.user_id, identity.email)
        refresh_token = await self.create_refresh_token(identity.user_id)

        return TokenResponse(
            access_token=access_token,
            expiration=int(refresh_token.expiration_date.timestamp()),
            refresh_token=str(refresh_token.id),
        )

    async def issue_tokens(self, user_id: UUID, email: str) -> TokenResponse:
        """Issue the token pair handed out at login."""
        access_token = self.issue_access_token(user_id, email)
        refresh_token = await self.create_refresh_token(user_id)

        return TokenResponse(
            access_token=access_token,
            expiration=int(refresh_token.expiration_date.timestamp()),
            refresh_token=str(refresh_token.id),
        )

    async def invalidate_all_for_user(self, user_id: UUID) -> int:
        """Inactivate every available refresh token owned by ``user_id``."""
        count = await self.store.mark_all_inactive_for_user(user_id)
        logger.info(f"Inactivated {count} refresh token(s) for user {user_id}")
        return count

    async def purge_refresh_tokens(self) -> int:
        """Delete expired or inactive refresh token rows."""
        count = await self.store.delete_expired_or_inactive(self._clock())
        if count:
            logger.info(f"Purged {count} expired or inactive refresh token(s)")
        return count
