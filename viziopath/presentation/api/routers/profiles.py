"""API router for profile management and discovery."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse

from ....application.services.profile_service import ProfileService
from ....core.dependencies import get_profile_service, get_storage_service
from ....services.storage_service import StorageService
from ...api.dependencies import get_current_user_id
from ...api.responses import api_response
from ...api.schemas.profile import AvatarUrlRequest, ProfileUpdateRequest

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("/me")
def get_my_profile(
    user_id: int = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    profile = profile_service.get_my_profile(user_id)
    return api_response({"profile": profile.to_dict()}, "Profile retrieved successfully")


@router.put("/me")
def update_my_profile(
    payload: ProfileUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    profile = profile_service.update_profile(user_id, payload.to_changes())
    return api_response({"profile": profile.to_dict()}, "Profile updated successfully")


@router.put("/me/avatar")
def update_avatar(
    payload: AvatarUrlRequest,
    user_id: int = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    profile = profile_service.update_avatar(user_id, payload.avatar_url)
    return api_response({"profile": profile.to_dict()}, "Avatar updated successfully")


@router.post("/me/avatar/upload")
async def upload_avatar(
    file: UploadFile = File(...),
    user_id: int = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
    storage: StorageService = Depends(get_storage_service),
) -> JSONResponse:
    if file.size is not None:
        storage.validate(file.content_type, file.size)
    # One byte past the limit is enough for validate() to reject it.
    data = await file.read(storage.max_bytes + 1)
    profile = await profile_service.upload_avatar(user_id, file.content_type, data)
    return api_response({"profile": profile.to_dict()}, "Avatar uploaded successfully")


@router.delete("/me")
def delete_my_profile(
    user_id: int = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    profile_service.delete_profile(user_id)
    return api_response({}, "Profile deleted successfully")


@router.get("/search")
def search_profiles(
    q: Optional[str] = None,
    skills: Optional[str] = None,
    location: Optional[str] = None,
    company: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _: int = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    result = profile_service.search_profiles(
        query=q,
        skills=skills,
        location=location,
        company=company,
        page=page,
        limit=limit,
    )
    return api_response(
        {
            "profiles": [profile.to_dict() for profile in result["profiles"]],
            "pagination": result["pagination"],
        },
        "Profiles retrieved successfully",
    )


@router.get("/suggestions")
def profile_suggestions(
    limit: int = Query(5, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    suggestions = profile_service.suggest_profiles(user_id, limit)
    return api_response(
        {"suggestions": [profile.to_dict() for profile in suggestions]},
        "Profile suggestions retrieved successfully",
    )


@router.get("/{user_id}")
def get_profile(
    user_id: int,
    viewer_id: int = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    profile = profile_service.get_profile(viewer_id, user_id)
    return api_response({"profile": profile.to_dict()}, "Profile retrieved successfully")
