"""API router for account authentication and security workflows."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ....application.services.account_service import AccountService
from ....core.config import Settings
from ....core.dependencies import get_account_service, get_settings
from ...api.dependencies import clear_session_cookie, get_current_user_id, set_session_cookie
from ...api.responses import api_response
from ...api.schemas.auth import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    UpdateAccountRequest,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    account_service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    result = account_service.register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
    )
    response = api_response(
        {"user": result.user.to_public_dict()}, result.message, status.HTTP_201_CREATED
    )
    set_session_cookie(response, result.token, settings)
    return response


@router.post("/login")
def login(
    payload: LoginRequest,
    account_service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    result = account_service.login(payload.email, payload.password)
    response = api_response({"user": result.user.to_public_dict()}, result.message)
    set_session_cookie(response, result.token, settings)
    return response


@router.post("/forgot-password")
def forgot_password(
    payload: ForgotPasswordRequest,
    account_service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    return api_response({}, account_service.forgot_password(payload.email))


@router.post("/reset-password")
def reset_password(
    payload: ResetPasswordRequest,
    account_service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    account_service.reset_password(payload.token, payload.new_password)
    return api_response({}, "Password reset successful")


@router.get("/verify-email/{token}")
def verify_email(
    token: str,
    account_service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    account_service.verify_email(token)
    return api_response({}, "Email verified successfully")


@router.post("/resend-verification")
def resend_verification(
    payload: ResendVerificationRequest,
    account_service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    return api_response({}, account_service.resend_verification(payload.email))


@router.get("/me")
def me(
    user_id: int = Depends(get_current_user_id),
    account_service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    user = account_service.get_account(user_id)
    return api_response({"user": user.to_public_dict()}, "User profile retrieved")


@router.put("/profile")
def update_account(
    payload: UpdateAccountRequest,
    user_id: int = Depends(get_current_user_id),
    account_service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    user = account_service.update_account(
        user_id,
        name=payload.name,
        phone=payload.phone,
        preferences=payload.account_preferences(),
        profile_fields=payload.profile_fields(),
    )
    return api_response({"user": user.to_public_dict()}, "Profile updated successfully")


@router.put("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    user_id: int = Depends(get_current_user_id),
    account_service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    account_service.change_password(user_id, payload.current_password, payload.new_password)
    return api_response({}, "Password changed successfully")


@router.post("/logout")
def logout(
    user_id: int = Depends(get_current_user_id),
    account_service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    account_service.logout(user_id)
    response = api_response({}, "Logged out successfully")
    clear_session_cookie(response, settings)
    return response


@router.delete("/account")
def delete_account(
    payload: DeleteAccountRequest,
    user_id: int = Depends(get_current_user_id),
    account_service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    account_service.delete_account(user_id, payload.password)
    response = api_response({}, "Account deleted successfully")
    clear_session_cookie(response, settings)
    return response
