"""JWT issuance, verification and revocation."""

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

from chat_aggregator.core import settings
from chat_aggregator.models import User
from chat_aggregator.services.errors import InvalidTokenError
from chat_aggregator.services.store import CredentialStore

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

REQUIRED_CLAIMS = ["sub", "jti", "iat", "exp"]


class JWTService:
    """Signs and checks access/refresh tokens against two independent secrets.

    Every verification failure surfaces as the same InvalidTokenError so a
    caller cannot tell which check rejected a token.
    """

    def __init__(
        self,
        store: CredentialStore,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self.store = store
        self._secrets = {ACCESS: access_secret, REFRESH: refresh_secret}
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def _issue(self, user: User, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": str(user.id),
            "role": user.role,
            "type": token_type,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self._secrets[token_type], algorithm=self.algorithm)

    def issue_access_token(self, user: User) -> str:
        """Create a short-lived access token."""
        return self._issue(user, ACCESS, self.access_ttl)

    def issue_refresh_token(self, user: User) -> str:
        """Create a long-lived refresh token."""
        return self._issue(user, REFRESH, self.refresh_ttl)

    def _decode(self, token: str, token_type: str, verify_exp: bool = True) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS, "verify_exp": verify_exp},
            )
        except PyJWTError as e:
            raise InvalidTokenError() from e

    async def _verify(self, token: str, token_type: str) -> dict[str, Any]:
        claims = self._decode(token, token_type)
        if claims.get("type") != token_type:
            raise InvalidTokenError()
        if await self.store.is_token_revoked(claims["jti"]):
            logger.debug(f"Rejected revoked {token_type} token jti={claims['jti']}")
            raise InvalidTokenError()
        return claims

    async def verify_access_token(self, token: str) -> dict[str, Any]:
        """Return claims for a valid, unexpired, unrevoked access token."""
        return await self._verify(token, ACCESS)

    async def verify_refresh_token(self, token: str) -> dict[str, Any]:
        """Return claims for a valid, unexpired, unrevoked refresh token."""
        return await self._verify(token, REFRESH)

    async def revoke(self, token: str) -> None:
        """Add the token's JTI to the revocation set.

        Only the signature is checked: expired tokens and tokens of either
        purpose can be revoked. Revoking twice is harmless.
        """
        claims: dict[str, Any] | None = None
        for token_type in (ACCESS, REFRESH):
            try:
                claims = self._decode(token, token_type, verify_exp=False)
                break
            except InvalidTokenError:
                continue
        if claims is None:
            raise InvalidTokenError()

        expires_at = datetime.fromtimestamp(claims["exp"], UTC)
        await self.store.revoke_token(claims["jti"], expires_at)
        logger.info(
            f"Revoked token jti={claims['jti']} for user {claims['sub']}",
            extra={"user_id": claims["sub"], "jti": claims["jti"], "auth_type": "jwt"},
        )

    async def cleanup_expired_tokens(self) -> int:
        """Prune revocation entries whose tokens have expired anyway."""
        return await self.store.cleanup_expired_tokens()


def build_jwt_service(store: CredentialStore) -> JWTService:
    """JWT service configured from settings."""
    return JWTService(
        store,
        access_secret=settings.jwt_secret,
        refresh_secret=settings.jwt_refresh_secret,
        algorithm=settings.jwt_algorithm,
        access_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
        refresh_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
    )
