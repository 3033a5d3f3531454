"""User domain model for account authentication and security state."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"


def default_preferences() -> Dict[str, Any]:
    return {
        "notifications": {"email": True, "push": True},
        "theme": "auto",
        "language": "en",
    }


def merge_preferences(current: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay ``changes`` onto ``current`` without mutating either."""
    merged = dict(current)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_preferences(merged[key], value)
        else:
            merged[key] = value
    return merged


class User:
    """
    User entity representing an authenticable account.

    Attributes:
        id: Unique identifier
        name: Display name
        email: Normalised (trimmed, lower-cased) email address, unique
        password_hash: bcrypt hash of the password, never the plaintext
        phone: Optional phone number
        role: Account role
        is_verified: Whether the email address has been verified
        verification_token: Pending email verification secret
        verification_expires_at: Expiry of the verification secret
        reset_password_token: Pending password reset secret
        reset_password_expires_at: Expiry of the reset secret
        login_attempts: Consecutive failed logins in the current window
        lock_until: End of the lockout window, if one was engaged
        last_login: Timestamp of the last successful login
        preferences: Notification/theme/language preferences
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: int,
        name: str,
        email: str,
        password_hash: str,
        phone: Optional[str] = None,
        role: Role = Role.USER,
        is_verified: bool = False,
        verification_token: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
        reset_password_token: Optional[str] = None,
        reset_password_expires_at: Optional[datetime] = None,
        login_attempts: int = 0,
        lock_until: Optional[datetime] = None,
        last_login: Optional[datetime] = None,
        preferences: Optional[Dict[str, Any]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.email = email
        self.password_hash = password_hash
        self.phone = phone
        self.role = role
        self.is_verified = is_verified
        self.verification_token = verification_token
        self.verification_expires_at = verification_expires_at
        self.reset_password_token = reset_password_token
        self.reset_password_expires_at = reset_password_expires_at
        self.login_attempts = login_attempts
        self.lock_until = lock_until
        self.last_login = last_login
        self.preferences = preferences or default_preferences()
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """True iff a lockout window exists and has not yet elapsed."""
        if self.lock_until is None:
            return False
        return self.lock_until > (now or datetime.now(timezone.utc))

    def to_public_dict(self) -> Dict[str, Any]:
        """Serialise the account without credentials, secret tokens or lockout counters."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role.value,
            "isVerified": self.is_verified,
            "lastLogin": _isoformat(self.last_login),
            "preferences": self.preferences,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }

    def to_owner_summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "isVerified": self.is_verified,
            "createdAt": _isoformat(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role.value} verified={self.is_verified}>"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
