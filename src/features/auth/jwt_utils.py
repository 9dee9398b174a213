"""JWT utilities for authentication.

Access tokens are stateless: signature and embedded timestamps decide
validity, no store lookup is made.
"""

import logging
import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import (
    BadSignatureError,
    InvalidClaimsError,
    MalformedTokenError,
    TokenExpiredError,
    TokenNotYetValidError,
    TokenSigningError,
)

logger = logging.getLogger(__name__)

TOKEN_ISSUER = "task-api"
TOKEN_SUBJECT = "task-api access token"
BEARER_PREFIX = "Bearer "
REQUIRED_CLAIMS = ["iss", "sub", "jti", "iat", "nbf", "exp", "user_id", "email"]

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class IdentityClaim(BaseModel):
    """Identity carried by an access token."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    email: str


class TokenCodec:
    """Mint and decode signed access tokens.

    Args:
        secret_key: Symmetric signing secret
        algorithm: HMAC algorithm name understood by PyJWT
        clock: Time source used for every timestamp and comparison

    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", clock: Clock = utc_now):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock

    def mint(self, claim: IdentityClaim, lifetime: timedelta) -> str:
        """Create a signed access token for ``claim`` valid for ``lifetime``.

        Raises:
            TokenSigningError: If the token cannot be signed

        """
        now = self._clock()
        issued_at = int(now.timestamp())
        # Round up so the token never expires before now + lifetime
        expires_at = math.ceil((now + lifetime).timestamp())

        payload: dict[str, Any] = {
            "iss": TOKEN_ISSUER,
            "sub": TOKEN_SUBJECT,
            "jti": str(uuid4()),
            "iat": issued_at,
            "nbf": issued_at,
            "exp": expires_at,
            "user_id": str(claim.user_id),
            "email": claim.email,
        }

        try:
            token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as exc:
            logger.error(f"Failed to sign access token: {exc}")
            raise TokenSigningError(str(exc)) from exc

        logger.debug(f"Minted access token for user {claim.user_id}")
        return token

    def decode(self, token: str) -> IdentityClaim:
        """Verify ``token`` and return the identity it carries.

        An optional ``Bearer`` prefix is stripped first.

        Raises:
            MalformedTokenError: Not a well-formed signed token
            BadSignatureError: Signature does not verify
            TokenExpiredError: Current time is at or past ``exp``
            TokenNotYetValidError: Current time precedes ``nbf``
            InvalidClaimsError: Claims missing or of the wrong shape

        """
        token = token.strip().removeprefix(BEARER_PREFIX).strip()

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=TOKEN_ISSUER,
                # Temporal claims are checked below against the injected clock
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidSignatureError as exc:
            logger.warning(f"Rejected access token with invalid signature: {exc}")
            raise BadSignatureError() from exc
        except jwt.DecodeError as exc:
            logger.warning(f"Rejected malformed access token: {exc}")
            raise MalformedTokenError() from exc
        except jwt.InvalidTokenError as exc:
            logger.warning(f"Rejected access token with invalid claims: {exc}")
            raise InvalidClaimsError(str(exc)) from exc

        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
            not_before = datetime.fromtimestamp(int(payload["nbf"]), UTC)
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            logger.warning(f"Rejected access token with unreadable timestamps: {exc}")
            raise InvalidClaimsError("invalid temporal claims") from exc

        now = self._clock()
        if now >= expires_at:
            logger.warning(f"Rejected expired access token (expired_at={expires_at.isoformat()})")
            raise TokenExpiredError(expires_at)
        if now < not_before:
            logger.warning(f"Rejected access token not yet valid (not_before={not_before.isoformat()})")
            raise TokenNotYetValidError(not_before)

        try:
            claim = IdentityClaim(user_id=payload["user_id"], email=payload["email"])
        except ValidationError as exc:
            logger.warning("Rejected access token with invalid identity claims")
            raise InvalidClaimsError("invalid identity claims") from exc

        logger.debug(f"Decoded access token for user {claim.user_id}")
        return claim
