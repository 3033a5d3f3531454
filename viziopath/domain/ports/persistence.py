from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from ..models import Profile, Role, User


class DuplicateEmailError(Exception):
    """Raised when an account with the same normalised email already exists."""


class AccountNotFoundError(Exception):
    """Raised when a write targets an account row that no longer exists."""


class UserRepository(Protocol):
    """Persistence functions related to accounts.

    Every mutation is a single conditional update so concurrent requests racing
    on the same row are serialised by the storage engine.
    """

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        phone: Optional[str] = None,
        verification_token: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
        role: Role = Role.USER,
        is_verified: bool = False,
    ) -> User:
        ...

    def update_user(
        self,
        user_id: int,
        *,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> User:
        ...

    def update_user_password(self, user_id: int, password_hash: str) -> User:
        ...

    def set_verification_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        ...

    def set_reset_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        ...

    def get_user_by_reset_token(self, token: str, now: datetime) -> Optional[User]:
        ...

    def consume_verification_token(self, token: str, now: datetime) -> Optional[User]:
        ...

    def consume_reset_token(self, token: str, password_hash: str, now: datetime) -> Optional[User]:
        ...

    def record_login_failure(
        self,
        user_id: int,
        now: datetime,
        max_attempts: int,
        lock_until: datetime,
    ) -> User:
        ...

    def record_login_success(self, user_id: int, now: datetime) -> User:
        ...

    def delete_user(self, user_id: int) -> bool:
        ...


class ProfileRepository(Protocol):
    """Persistence functions related to the profile linked to each account."""

    def get_profile(self, user_id: int) -> Optional[Profile]:
        ...

    def create_profile(self, user_id: int) -> Profile:
        ...

    def update_profile(self, user_id: int, fields: Dict[str, Any]) -> Profile:
        ...

    def increment_profile_views(self, user_id: int) -> None:
        ...

    def delete_profile(self, user_id: int) -> bool:
        ...

    def search_profiles(
        self,
        *,
        query: Optional[str] = None,
        skills: Sequence[str] = (),
        location: Optional[str] = None,
        company: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Profile], int]:
        ...

    def suggest_profiles(
        self,
        *,
        exclude_user_id: int,
        skills: Sequence[str] = (),
        location: Optional[str] = None,
        limit: int = 5,
    ) -> List[Profile]:
        ...


class PersistenceGateway(UserRepository, ProfileRepository, Protocol):
    """Composite gateway combining every persistence concern used by the app."""

    pass
