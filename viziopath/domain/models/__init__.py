"""Domain models for the Viziopath backend."""

from .profile import Profile, ProfileOwner, ProfileStats
from .user import Role, User

__all__ = [
    "Profile",
    "ProfileOwner",
    "ProfileStats",
    "Role",
    "User",
]
