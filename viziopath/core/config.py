import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True, slots=True)
class SecurityConfig:
    """Credential, session and secret-token parameters shared by the auth components."""

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_lifetime: timedelta = timedelta(days=7)
    bcrypt_rounds: int = 12
    verification_ttl: timedelta = timedelta(hours=24)
    reset_ttl: timedelta = timedelta(hours=1)
    max_login_attempts: int = 5
    lock_duration: timedelta = timedelta(hours=2)


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.environment = os.getenv("APP_ENV", "development").strip().lower()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/viziopath.db")).resolve()
        self.jwt_secret = os.getenv("JWT_SECRET", "change-me")
        self.jwt_expires_days = self._get_int("JWT_EXPIRES_DAYS", default=7)
        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=12)
        self.verification_ttl_hours = self._get_int("VERIFICATION_TTL_HOURS", default=24)
        self.reset_ttl_hours = self._get_int("RESET_TTL_HOURS", default=1)
        self.max_login_attempts = self._get_int("MAX_LOGIN_ATTEMPTS", default=5)
        self.lock_hours = self._get_int("LOCK_HOURS", default=2)
        self.cookie_domain = os.getenv("COOKIE_DOMAIN") or None
        self.frontend_base_url = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")
        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME", "")
        self.smtp_password = os.getenv("SMTP_PASSWORD", "")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL", "") or self.smtp_username
        self.upload_dir = Path(os.getenv("UPLOAD_DIR", "uploads")).resolve()
        self.max_upload_bytes = self._get_int("MAX_UPLOAD_BYTES", default=5 * 1024 * 1024)
        self.s3_bucket_name = os.getenv("S3_BUCKET_NAME")
        self.s3_endpoint_url = os.getenv("S3_ENDPOINT")
        self.s3_access_key = os.getenv("S3_ACCESS_KEY")
        self.s3_secret_key = os.getenv("S3_SECRET_KEY")
        self.s3_region = os.getenv("S3_REGION", "auto")
        self.s3_public_domain = os.getenv("S3_PUBLIC_DOMAIN")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = [self.frontend_base_url]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def security(self) -> SecurityConfig:
        return SecurityConfig(
            jwt_secret=self.jwt_secret,
            token_lifetime=timedelta(days=self.jwt_expires_days),
            bcrypt_rounds=self.bcrypt_rounds,
            verification_ttl=timedelta(hours=self.verification_ttl_hours),
            reset_ttl=timedelta(hours=self.reset_ttl_hours),
            max_login_attempts=self.max_login_attempts,
            lock_duration=timedelta(hours=self.lock_hours),
        )

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None or value == "":
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc
