"""
Drama Quotes Backend — Session Token Service
============================================

What:  Issues and verifies signed, time-bounded session tokens (JWT, HS256).
How:   PyJWT signs `{sub, username, iat, exp}` with the configured key.
       Verification checks the signature and required claims, then compares
       `exp` with the service clock.
Who:   UserService issues tokens; the auth dependency verifies them.

Statelessness:
    Nothing is stored server-side. A token is valid while its signature checks
    out and `now < exp`; there is no revocation before expiry.

Signing key:
    Passed in at construction. When none is configured the service still
    starts with a development key and logs a warning; startup repeats the
    warning through Settings.configuration_warnings().
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from dramaquotes.config import settings
from dramaquotes.exceptions import TokenExpired, TokenInvalid, TokenMissing
from dramaquotes.schemas.auth import TokenIdentity

logger = logging.getLogger(__name__)

DEV_FALLBACK_SECRET = "dramaquotes-development-secret-change-me"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Args:
        secret_key: HMAC signing key; empty selects the development fallback
        algorithm: JWT algorithm (HS256 by default)
        expire_minutes: token lifetime
        clock: returns the current aware datetime; injectable for tests
    """

    def __init__(
        self,
        secret_key: Optional[str],
        algorithm: str = "HS256",
        expire_minutes: int = 1440,
        clock: Optional[Clock] = None,
    ):
        if not secret_key:
            logger.warning(
                "No token signing key configured; using the development fallback key. "
                "Set JWT_SECRET_KEY before deploying."
            )
            secret_key = DEV_FALLBACK_SECRET
        self.uses_fallback_key = secret_key == DEV_FALLBACK_SECRET
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = timedelta(minutes=expire_minutes)
        self._clock = clock or _utc_now

    @property
    def lifetime_seconds(self) -> int:
        return int(self.lifetime.total_seconds())

    def issue(self, user_id: int, username: str) -> str:
        """Sign a token asserting `user_id` / `username`, valid for `lifetime`."""
        now = self._clock()
        payload = {
            "sub": str(user_id),
            "username": username,
            "iat": int(now.timestamp()),
            "exp": int((now + self.lifetime).timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> TokenIdentity:
        """
        Validate a presented token and return its identity claim.

        Raises:
            TokenMissing: no token (None or empty)
            TokenInvalid: bad signature, malformed token or claims
            TokenExpired: current time is at or past `exp`
        """
        if not token:
            raise TokenMissing()

        try:
            # Time claims are checked below against the injected clock
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={
                    "require": ["sub", "exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.info("Rejected token: %s", type(e).__name__)
            raise TokenInvalid(context={"reason": type(e).__name__}) from e

        try:
            expires_at = int(payload["exp"])
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise TokenInvalid(context={"reason": "malformed_claims"}) from e

        username = payload.get("username")
        if not isinstance(username, str) or not username:
            raise TokenInvalid(context={"reason": "missing_username"})

        if self._clock().timestamp() >= expires_at:
            raise TokenExpired(context={"user_id": user_id})

        return TokenIdentity(user_id=user_id, username=username)


token_service = TokenService(
    secret_key=settings.jwt_secret_key.get_secret_value(),
    algorithm=settings.jwt_algorithm,
    expire_minutes=settings.access_token_expire_minutes,
)
