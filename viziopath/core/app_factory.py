from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..application.services.account_service import AccountService
from ..application.services.profile_service import ProfileService
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.responses import api_response
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import profiles as profiles_router
from ..services.credential_store import CredentialStore
from ..services.email_service import EmailService
from ..services.secret_tokens import SecretTokenGenerator
from ..services.storage_service import LOCAL_URL_PREFIX, StorageService
from ..services.token_issuer import TokenIssuer
from .config import Settings
from .container import ApplicationContainer
from .errors import ApiError
from .logging import configure_logging, log_requests

logger = logging.getLogger(__name__)

SERVICE_NAME = "viziopath-backend"


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Viziopath API", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)
    _register_exception_handlers(app, settings)

    app.include_router(auth_router.router)
    app.include_router(profiles_router.router)
    app.mount(
        LOCAL_URL_PREFIX,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "service": SERVICE_NAME}

    @app.get("/api")
    async def api_root() -> Dict[str, Any]:
        return {"message": "Viziopath API v1"}

    return app


def build_container(settings: Settings) -> ApplicationContainer:
    security = settings.security()
    persistence = SQLitePersistence(settings.database_path)
    credential_store = CredentialStore(persistence, security)
    token_issuer = TokenIssuer(security)
    email_service = EmailService(
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
        frontend_base_url=settings.frontend_base_url,
    )
    storage_service = StorageService(
        upload_dir=settings.upload_dir,
        max_bytes=settings.max_upload_bytes,
        bucket_name=settings.s3_bucket_name,
        endpoint_url=settings.s3_endpoint_url,
        access_key=settings.s3_access_key,
        secret_key=settings.s3_secret_key,
        region_name=settings.s3_region,
        public_domain=settings.s3_public_domain,
    )
    account_service = AccountService(
        persistence=persistence,
        credentials=credential_store,
        token_issuer=token_issuer,
        verification_tokens=SecretTokenGenerator(security.verification_ttl),
        reset_tokens=SecretTokenGenerator(security.reset_ttl),
        email_service=email_service,
    )
    profile_service = ProfileService(persistence, storage_service)
    return ApplicationContainer(
        settings=settings,
        persistence=persistence,
        credential_store=credential_store,
        token_issuer=token_issuer,
        email_service=email_service,
        storage_service=storage_service,
        account_service=account_service,
        profile_service=profile_service,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        if settings.jwt_secret == "change-me":
            logger.warning("JWT_SECRET is using the default value. Configure a strong secret in production.")
        settings.upload_dir.mkdir(parents=True, exist_ok=True)

        container = build_container(settings)
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("%s started in %s mode", SERVICE_NAME, settings.environment)

        try:
            yield
        finally:
            container.persistence.close()

    return lifespan


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return api_response({}, exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return api_response({}, _describe_validation_error(exc), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = str(exc.detail)
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "Route not found"
        return api_response({}, message, exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        data = {"detail": str(exc)} if settings.is_development else {}
        return api_response(data, "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON payload"
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid value")
    return f"{'.'.join(location)}: {message}" if location else message
