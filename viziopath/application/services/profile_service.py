from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from ...core.errors import BadRequestError, ForbiddenError, NotFoundError
from ...domain.models import Profile
from ...domain.models.profile import unique_skills
from ...domain.models.user import merge_preferences
from ...domain.ports.persistence import AccountNotFoundError, PersistenceGateway
from ...services.storage_service import StorageService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class ProfileService:
    """CRUD, search and suggestions over the profile linked to each account."""

    def __init__(self, persistence: PersistenceGateway, storage: StorageService) -> None:
        self._persistence = persistence
        self._storage = storage

    def get_my_profile(self, user_id: int) -> Profile:
        """Return the caller's profile, creating it with defaults on first access."""
        profile = self._persistence.get_profile(user_id)
        if profile is None:
            try:
                profile = self._persistence.create_profile(user_id)
            except AccountNotFoundError as exc:
                raise NotFoundError("User not found") from exc
            logger.info("Created profile for account %s", user_id)
        return profile

    def get_profile(self, viewer_id: int, user_id: int) -> Profile:
        profile = self._persistence.get_profile(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        if viewer_id == user_id:
            return profile
        if profile.visibility == "private":
            raise ForbiddenError("Profile is private")
        self._persistence.increment_profile_views(user_id)
        return self._persistence.get_profile(user_id) or profile

    def update_profile(self, user_id: int, changes: Dict[str, Any]) -> Profile:
        fields = dict(changes)
        if "skills" in fields:
            fields["skills"] = unique_skills([skill.strip() for skill in fields["skills"] if skill.strip()])
        if "preferences" in fields:
            current = self.get_my_profile(user_id)
            fields["preferences"] = merge_preferences(current.preferences, fields["preferences"])
        return self._save(user_id, fields)

    def update_avatar(self, user_id: int, avatar_url: Optional[str]) -> Profile:
        if not avatar_url:
            raise BadRequestError("Avatar URL is required")
        return self._save(user_id, {"avatar": avatar_url})

    async def upload_avatar(self, user_id: int, content_type: Optional[str], data: bytes) -> Profile:
        if await run_in_threadpool(self._persistence.get_user_by_id, user_id) is None:
            raise NotFoundError("User not found")
        url = await self._storage.save_avatar(user_id, content_type, data)
        logger.info("Stored avatar for account %s at %s", user_id, url)
        return await run_in_threadpool(self._save, user_id, {"avatar": url})

    def delete_profile(self, user_id: int) -> None:
        self._persistence.delete_profile(user_id)

    def search_profiles(
        self,
        *,
        query: Optional[str] = None,
        skills: Optional[str] = None,
        location: Optional[str] = None,
        company: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        skill_list = _split_skills(skills)
        profiles, total = self._persistence.search_profiles(
            query=query.strip() if query else None,
            skills=skill_list,
            location=location.strip() if location else None,
            company=company.strip() if company else None,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return {
            "profiles": profiles,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    def suggest_profiles(self, user_id: int, limit: int = 5) -> List[Profile]:
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        current = self._persistence.get_profile(user_id)
        return self._persistence.suggest_profiles(
            exclude_user_id=user_id,
            skills=current.skills if current else (),
            location=current.location if current and current.location else None,
            limit=limit,
        )

    def _save(self, user_id: int, fields: Dict[str, Any]) -> Profile:
        try:
            return self._persistence.update_profile(user_id, fields)
        except AccountNotFoundError as exc:
            raise NotFoundError("User not found") from exc


def _split_skills(skills: Optional[str]) -> List[str]:
    if not skills:
        return []
    return [skill.strip() for skill in skills.split(",") if skill.strip()]
