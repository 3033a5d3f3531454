"""Pydantic schemas for account authentication endpoints."""

from typing import Annotated, Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"

DisplayName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
Password = Annotated[str, Field(min_length=6)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """Request schema for account registration."""

    name: DisplayName
    email: EmailStr
    password: Password
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)


class LoginRequest(CamelModel):
    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: Annotated[str, Field(min_length=1)]


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    new_password: Password


class ResendVerificationRequest(CamelModel):
    email: EmailStr


class ChangePasswordRequest(CamelModel):
    current_password: Annotated[str, Field(min_length=1)]
    new_password: Password


class DeleteAccountRequest(CamelModel):
    password: Annotated[str, Field(min_length=1)]


class NotificationPreferences(CamelModel):
    email: Optional[bool] = None
    push: Optional[bool] = None


class AccountPreferences(CamelModel):
    notifications: Optional[NotificationPreferences] = None
    theme: Optional[Literal["light", "dark", "auto"]] = None
    language: Optional[Annotated[str, StringConstraints(min_length=2, max_length=10)]] = None


class AccountSocialLinks(CamelModel):
    twitter: Optional[Annotated[str, Field(max_length=100)]] = None
    linkedin: Optional[Annotated[str, Field(max_length=100)]] = None
    github: Optional[Annotated[str, Field(max_length=100)]] = None


class UpdateAccountRequest(CamelModel):
    """Basic account fields; bio/location/website/social are written to the linked profile."""

    name: Optional[DisplayName] = None
    phone: Optional[str] = Field(default=None, pattern=r"^(\+?[1-9]\d{0,15})?$")
    preferences: Optional[AccountPreferences] = None
    bio: Optional[Annotated[str, Field(max_length=500)]] = None
    location: Optional[Annotated[str, Field(max_length=100)]] = None
    website: Optional[Annotated[str, Field(max_length=200)]] = None
    social: Optional[AccountSocialLinks] = None

    def account_preferences(self) -> Optional[Dict[str, Any]]:
        if self.preferences is None:
            return None
        return self.preferences.model_dump(exclude_none=True)

    def profile_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for name in ("bio", "location", "website"):
            value = getattr(self, name)
            if value is not None:
                fields[name] = value
        if self.social is not None:
            fields["social"] = self.social.model_dump(exclude_none=True)
        return fields
