"""Pydantic schemas for profile endpoints."""

from datetime import date
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import Field

from .auth import CamelModel

Skill = Annotated[str, Field(min_length=1, max_length=50)]


class EducationEntry(CamelModel):
    institution: Annotated[str, Field(min_length=1, max_length=200)]
    degree: Annotated[str, Field(min_length=1, max_length=100)]
    field: Optional[Annotated[str, Field(max_length=100)]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[Annotated[str, Field(max_length=500)]] = None


class ExperienceEntry(CamelModel):
    company: Annotated[str, Field(min_length=1, max_length=200)]
    position: Annotated[str, Field(min_length=1, max_length=100)]
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    current: bool = False
    description: Optional[Annotated[str, Field(max_length=1000)]] = None


class SocialLinks(CamelModel):
    twitter: Optional[Annotated[str, Field(max_length=100)]] = None
    linkedin: Optional[Annotated[str, Field(max_length=100)]] = None
    github: Optional[Annotated[str, Field(max_length=100)]] = None
    facebook: Optional[Annotated[str, Field(max_length=100)]] = None
    instagram: Optional[Annotated[str, Field(max_length=100)]] = None


class ProfileNotifications(CamelModel):
    email: Optional[bool] = None
    push: Optional[bool] = None
    marketing: Optional[bool] = None


class PrivacySettings(CamelModel):
    profile_visibility: Optional[Literal["public", "private", "connections"]] = None
    show_email: Optional[bool] = None
    show_phone: Optional[bool] = None


class ProfilePreferences(CamelModel):
    theme: Optional[Literal["light", "dark", "auto"]] = None
    language: Optional[Annotated[str, Field(min_length=2, max_length=10)]] = None
    notifications: Optional[ProfileNotifications] = None
    privacy: Optional[PrivacySettings] = None


class ProfileUpdateRequest(CamelModel):
    bio: Optional[Annotated[str, Field(max_length=500)]] = None
    location: Optional[Annotated[str, Field(max_length=100)]] = None
    website: Optional[Annotated[str, Field(max_length=200)]] = None
    company: Optional[Annotated[str, Field(max_length=100)]] = None
    job_title: Optional[Annotated[str, Field(max_length=100)]] = None
    skills: Optional[List[Skill]] = None
    education: Optional[List[EducationEntry]] = None
    experience: Optional[List[ExperienceEntry]] = None
    social: Optional[SocialLinks] = None
    preferences: Optional[ProfilePreferences] = None

    def to_changes(self) -> Dict[str, Any]:
        """Only the fields the caller sent, nested values in their JSON (camelCase) form."""
        changes: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None:
                continue
            if name in ("education", "experience"):
                changes[name] = [entry.model_dump(mode="json", by_alias=True) for entry in value]
            elif name in ("social", "preferences"):
                changes[name] = value.model_dump(mode="json", by_alias=True, exclude_none=True)
            else:
                changes[name] = value
        return changes


class AvatarUrlRequest(CamelModel):
    avatar_url: Optional[str] = None
