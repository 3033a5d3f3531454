"""Signed session tokens carrying an account id and an expiry."""

from datetime import datetime, timezone
from typing import Callable, Optional

import jwt

from ..core.config import SecurityConfig
from ..core.errors import UnauthorizedError


class TokenIssuer:
    """Mints and verifies HS256 JWT session tokens."""

    def __init__(
        self,
        config: SecurityConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config = config
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def lifetime_seconds(self) -> int:
        return int(self._config.token_lifetime.total_seconds())

    def issue(self, user_id: int) -> str:
        now = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self._config.token_lifetime,
        }
        return jwt.encode(payload, self._config.jwt_secret, algorithm=self._config.jwt_algorithm)

    def verify(self, token: str) -> int:
        """
        Decode a session token and return the account id it was issued for.

        Raises:
            UnauthorizedError: If the token is malformed, tampered with or expired
        """
        try:
            payload = jwt.decode(
                token,
                self._config.jwt_secret,
                algorithms=[self._config.jwt_algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("Invalid or expired token") from exc
        except jwt.InvalidTokenError as exc:
            raise UnauthorizedError("Invalid or expired token") from exc
        try:
            return int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise UnauthorizedError("Invalid or expired token") from exc
