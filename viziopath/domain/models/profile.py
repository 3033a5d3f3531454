from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

PROFILE_VISIBILITIES = ("public", "private", "connections")


def default_profile_preferences() -> Dict[str, Any]:
    return {
        "theme": "auto",
        "language": "en",
        "notifications": {"email": True, "push": True, "marketing": False},
        "privacy": {"profileVisibility": "public", "showEmail": False, "showPhone": False},
    }


def unique_skills(skills: List[str]) -> List[str]:
    """Drop duplicate skills while keeping the first occurrence order."""
    seen: Dict[str, None] = {}
    for skill in skills:
        seen.setdefault(skill, None)
    return list(seen)


@dataclass(slots=True)
class ProfileOwner:
    id: int
    name: str
    email: str
    is_verified: bool
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "isVerified": self.is_verified,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(slots=True)
class ProfileStats:
    profile_views: int = 0
    connections: int = 0
    posts: int = 0


@dataclass(slots=True)
class Profile:
    id: int
    user_id: int
    avatar: Optional[str] = None
    bio: str = ""
    location: str = ""
    website: str = ""
    company: str = ""
    job_title: str = ""
    skills: List[str] = field(default_factory=list)
    education: List[Dict[str, Any]] = field(default_factory=list)
    experience: List[Dict[str, Any]] = field(default_factory=list)
    social: Dict[str, Any] = field(default_factory=dict)
    preferences: Dict[str, Any] = field(default_factory=default_profile_preferences)
    stats: ProfileStats = field(default_factory=ProfileStats)
    owner: Optional[ProfileOwner] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def visibility(self) -> str:
        return self.preferences.get("privacy", {}).get("profileVisibility", "public")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user": self.owner.to_dict() if self.owner else self.user_id,
            "avatar": self.avatar,
            "bio": self.bio,
            "location": self.location,
            "website": self.website,
            "company": self.company,
            "jobTitle": self.job_title,
            "skills": list(self.skills),
            "education": self.education,
            "experience": self.experience,
            "social": self.social,
            "preferences": self.preferences,
            "stats": {
                "profileViews": self.stats.profile_views,
                "connections": self.stats.connections,
                "posts": self.stats.posts,
            },
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
