from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.account_service import AccountService
from ...core.config import Settings
from ...core.dependencies import get_account_service
from ...core.errors import UnauthorizedError

SESSION_COOKIE = "token"

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    account_service: AccountService = Depends(get_account_service),
) -> int:
    """Resolve the caller from the session cookie, falling back to a bearer header."""
    token = request.cookies.get(SESSION_COOKIE)
    if not token and credentials is not None and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    if not token:
        raise UnauthorizedError("Not authenticated")
    return account_service.authenticate(token)


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.jwt_expires_days * 24 * 60 * 60,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.is_production,
        httponly=True,
        samesite="none" if settings.is_production else "lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        SESSION_COOKIE,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.is_production,
        httponly=True,
        samesite="none" if settings.is_production else "lax",
    )
