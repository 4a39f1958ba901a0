"""
Token Service

Issues and verifies signed, time-bounded identity assertions (JWT).
Verification never touches storage: the signature proves the token
was minted with our secret and the ``exp`` claim bounds its life.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from jose import jwt, JWTError

from finledger.core.exceptions import TokenExpired, TokenMalformed

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Create and check access tokens

    Args:
        secret_key: symmetric secret held only by the server process
        algorithm: algorithm used when signing
        lifetime: default lifetime of issued tokens
        allowed_algorithms: algorithms accepted on verify; defaults to
            ``[algorithm]``. Never taken from the token header.
        clock: returns the current aware datetime
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(hours=12),
        allowed_algorithms: Optional[Iterable[str]] = None,
        clock: Clock = utc_now,
    ):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = lifetime
        self.allowed_algorithms = list(allowed_algorithms or [algorithm])
        self._clock = clock

    def issue(self, user_id: str, lifetime: Optional[timedelta] = None) -> str:
        """Sign a token for user_id expiring at now + lifetime

        ``exp`` is a whole second, rounded up so the token never expires
        before the full lifetime has passed.
        """
        now = self._clock()
        expires_at = now + (lifetime if lifetime is not None else self.lifetime)
        claims = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": math.ceil(expires_at.timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def expires_at(self, token: str) -> datetime:
        """Expiration instant of a token this service issued"""
        return datetime.fromtimestamp(self._decode(token)["exp"], tz=timezone.utc)

    def verify(self, token: str) -> str:
        """
        Return the user id carried by a valid token

        Raises:
            TokenMalformed: unparsable, unexpected algorithm, bad signature
                or missing claims
            TokenExpired: current time is at or past ``exp``
        """
        claims = self._decode(token)
        if self._clock().timestamp() >= claims["exp"]:
            logger.debug("Expired token presented")
            raise TokenExpired("Token has expired")
        return claims["sub"]

    def _decode(self, token: str) -> dict:
        if not token or not isinstance(token, str):
            raise TokenMalformed("Token is empty")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise TokenMalformed(f"Token cannot be parsed: {e}") from e

        if header.get("alg") not in self.allowed_algorithms:
            logger.warning(f"Token with unexpected algorithm rejected: {header.get('alg')!r}")
            raise TokenMalformed("Unexpected signing algorithm")

        try:
            # expiry is checked against our own clock in verify()
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=self.allowed_algorithms,
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError as e:
            raise TokenMalformed(f"Invalid token: {e}") from e

        sub = claims.get("sub")
        exp = claims.get("exp")
        if not isinstance(sub, str) or not sub:
            raise TokenMalformed("Token has no subject")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise TokenMalformed("Token has no expiration")
        return claims
