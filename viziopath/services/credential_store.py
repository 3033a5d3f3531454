"""Password hashing and login-attempt lockout for accounts."""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import bcrypt

from ..core.config import SecurityConfig
from ..domain.models import User
from ..domain.ports.persistence import UserRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CredentialStore:
    """Owns the stored secret of an account and its lockout counters.

    Lockout is a two-state machine persisted on the account row:
    ``Active(attempts)`` and ``Locked(until)``. Every transition is written
    through the repository immediately.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        config: SecurityConfig,
        clock: Optional[Clock] = None,
    ) -> None:
        self._users = user_repository
        self._config = config
        self._clock = clock or utc_now

    def hash_password(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self._config.bcrypt_rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def set_password(self, user: User, plaintext: Optional[str]) -> bool:
        """
        Replace the stored secret with a fresh hash of ``plaintext``.

        Args:
            user: Account whose password changes
            plaintext: New password; ``None`` or the already stored hash leave it untouched

        Returns:
            True if a new hash was persisted, False if nothing changed
        """
        if plaintext is None or plaintext == user.password_hash:
            return False
        updated = self._users.update_user_password(user.id, self.hash_password(plaintext))
        user.password_hash = updated.password_hash
        user.updated_at = updated.updated_at
        return True

    def verify_password(self, user: User, plaintext: str) -> bool:
        if not plaintext or not user.password_hash:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), user.password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash for user %s is malformed", user.id)
            return False

    def is_locked(self, user: User) -> bool:
        return user.is_locked(self._clock())

    def record_failure(self, user: User) -> User:
        now = self._clock()
        updated = self._users.record_login_failure(
            user.id,
            now=now,
            max_attempts=self._config.max_login_attempts,
            lock_until=now + self._config.lock_duration,
        )
        if updated.is_locked(now) and not user.is_locked(now):
            logger.info(
                "Account %s locked until %s after %s failed logins",
                user.id,
                updated.lock_until.isoformat() if updated.lock_until else None,
                updated.login_attempts,
            )
        return updated

    def record_success(self, user: User) -> User:
        """Clear attempts and any lock, and stamp the login time."""
        return self._users.record_login_success(user.id, self._clock())
