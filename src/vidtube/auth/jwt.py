"""
JWT access/refresh token lifecycle.

Access tokens are stateless. Refresh tokens are single-use: the SHA-256 digest
of the one outstanding refresh token lives on the user row, and every refresh
swaps it for a new one with a conditional UPDATE. A replayed (stale) token no
longer matches the stored digest and is rejected.
"""

from __future__ import annotations

import hashlib
import hmac
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import jwt
import structlog
from sqlalchemy import update

from vidtube.db.models import User
from vidtube.errors import unauthorized

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vidtube.config import Settings

logger = structlog.get_logger()

INVALID_REFRESH_TOKEN = "Invalid refresh token"


@dataclass(frozen=True)
class TokenConfig:
    """Signing secrets and lifetimes for both token kinds."""

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=10)
    issuer: str = "vidtube"

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenConfig:
        return cls(
            access_secret=settings.jwt_access_secret,
            refresh_secret=settings.jwt_refresh_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
            issuer=settings.jwt_issuer,
        )


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_in: int
    refresh_expires_in: int


def token_digest(token: str) -> str:
    """Digest stored in place of the raw refresh token."""
    return hashlib.sha256(token.encode()).hexdigest()


class TokenService:
    """Issues, verifies, rotates and revokes tokens."""

    def __init__(self, config: TokenConfig) -> None:
        self.config = config

    # -- encoding --------------------------------------------------------

    def create_access_token(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self.config.access_ttl,
            "iss": self.config.issuer,
            "type": "access",
        }
        return jwt.encode(payload, self.config.access_secret, algorithm=self.config.algorithm)

    def create_refresh_token(self, user_id: uuid.UUID) -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            # Unique per issue so two refreshes in the same second never collide
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self.config.refresh_ttl,
            "iss": self.config.issuer,
            "type": "refresh",
        }
        return jwt.encode(payload, self.config.refresh_secret, algorithm=self.config.algorithm)

    def decode(self, token: str, expected_type: str = "access") -> dict[str, Any]:
        """
        Verify and decode a token.

        Raises:
            jwt.InvalidTokenError: If the token is invalid, expired, or of the wrong type.
        """
        secret = self.config.access_secret if expected_type == "access" else self.config.refresh_secret
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                options={"require": ["exp", "sub", "type"]},
            )
        except jwt.ExpiredSignatureError:
            msg = "Token has expired"
            raise jwt.InvalidTokenError(msg) from None

        if payload.get("type") != expected_type:
            msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
            raise jwt.InvalidTokenError(msg)
        return payload

    def verify_access(self, token: str) -> uuid.UUID:
        """Stateless access-token check. Returns the user id."""
        try:
            payload = self.decode(token, expected_type="access")
            return uuid.UUID(payload["sub"])
        except (jwt.InvalidTokenError, ValueError) as e:
            raise unauthorized("Invalid access token") from e

    # -- lifecycle -------------------------------------------------------

    def _pair(self, user: User) -> TokenPair:
        return TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user.id),
            access_expires_in=int(self.config.access_ttl.total_seconds()),
            refresh_expires_in=int(self.config.refresh_ttl.total_seconds()),
        )

    async def issue_pair(self, db: AsyncSession, user: User) -> TokenPair:
        """Create a new pair and overwrite the user's refresh slot."""
        pair = self._pair(user)
        user.refresh_token_hash = token_digest(pair.refresh_token)
        await db.flush()
        return pair

    async def refresh(self, db: AsyncSession, presented: str | None) -> tuple[TokenPair, User]:
        """
        Rotate a refresh token.

        Every failure, including an unknown user, is reported as the same
        Unauthorized error.
        """
        if not presented:
            raise unauthorized(INVALID_REFRESH_TOKEN)
        try:
            payload = self.decode(presented, expected_type="refresh")
            user_id = uuid.UUID(payload["sub"])
        except (jwt.InvalidTokenError, ValueError) as e:
            logger.info("refresh_rejected", reason="invalid_token", error=str(e))
            raise unauthorized(INVALID_REFRESH_TOKEN) from e

        user = await db.get(User, user_id)
        if user is None:
            logger.info("refresh_rejected", reason="unknown_user", user_id=str(user_id))
            raise unauthorized(INVALID_REFRESH_TOKEN)

        presented_digest = token_digest(presented)
        stored = user.refresh_token_hash
        if stored is None or not hmac.compare_digest(stored, presented_digest):
            logger.warning("refresh_rejected", reason="mismatch", user_id=str(user_id))
            raise unauthorized(INVALID_REFRESH_TOKEN)

        pair = self._pair(user)
        new_digest = token_digest(pair.refresh_token)
        result = await db.execute(
            update(User)
            .where(User.id == user.id)
            .where(User.refresh_token_hash == presented_digest)
            .values(refresh_token_hash=new_digest)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            # Another refresh with the same token won the swap
            logger.warning("refresh_rejected", reason="lost_rotation_race", user_id=str(user_id))
            raise unauthorized(INVALID_REFRESH_TOKEN)

        user.refresh_token_hash = new_digest
        await db.flush()
        logger.info("refresh_token_rotated", user_id=str(user_id))
        return pair, user

    async def revoke(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        """Clear the refresh slot (logout)."""
        await db.execute(update(User).where(User.id == user_id).values(refresh_token_hash=None))
        await db.flush()
        logger.info("refresh_token_revoked", user_id=str(user_id))
