"""Single-use secrets for email verification and password reset."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

TOKEN_BYTES = 32


class SecretTokenGenerator:
    """Produces opaque 256-bit hex tokens with an absolute expiry.

    One generator is built per purpose so each carries its own TTL; the tokens
    are stored in purpose-specific columns and looked up only there.
    """

    def __init__(
        self,
        ttl: timedelta,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def generate(self) -> Tuple[str, datetime]:
        return secrets.token_hex(TOKEN_BYTES), self._clock() + self.ttl
