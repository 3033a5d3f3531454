"""Shared fixtures for the Viziopath backend test suite."""

from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from viziopath.application.services.account_service import AccountService
from viziopath.application.services.profile_service import ProfileService
from viziopath.core.app_factory import create_application
from viziopath.core.config import SecurityConfig, Settings
from viziopath.infrastructure.persistence.sqlite import SQLitePersistence
from viziopath.services.credential_store import CredentialStore
from viziopath.services.email_service import EmailService
from viziopath.services.secret_tokens import SecretTokenGenerator
from viziopath.services.storage_service import StorageService
from viziopath.services.token_issuer import TokenIssuer

TEST_SECRET = "test-secret-key-for-signing-tokens"


class FakeClock:
    """Mutable clock injected wherever the code reads the current time."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class RecordingEmailService(EmailService):
    """Email collaborator that records outgoing mail instead of talking SMTP."""

    def __init__(self, deliver: bool = True) -> None:
        super().__init__()
        self.deliver = deliver
        self.sent: List[Tuple[str, str, str]] = []

    def send_verification_email(self, to_email: str, name: str, token: str) -> bool:
        self.sent.append(("verification", to_email, token))
        return self.deliver

    def send_password_reset_email(self, to_email: str, name: str, token: str) -> bool:
        self.sent.append(("reset", to_email, token))
        return self.deliver

    def send_welcome_email(self, to_email: str, name: str) -> bool:
        self.sent.append(("welcome", to_email, ""))
        return self.deliver

    def last_token(self, kind: str) -> str:
        for sent_kind, _, token in reversed(self.sent):
            if sent_kind == kind:
                return token
        raise AssertionError(f"No {kind} email was sent")


@pytest.fixture
def clock() -> FakeClock:
    # Real time, so session tokens minted by the fake clock still verify with PyJWT.
    return FakeClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def security_config() -> SecurityConfig:
    return SecurityConfig(jwt_secret=TEST_SECRET, bcrypt_rounds=4)


@pytest.fixture
def persistence(tmp_path):
    gateway = SQLitePersistence(tmp_path / "test.db")
    yield gateway
    gateway.close()


@pytest.fixture
def credential_store(persistence, security_config, clock) -> CredentialStore:
    return CredentialStore(persistence, security_config, clock=clock)


@pytest.fixture
def token_issuer(security_config, clock) -> TokenIssuer:
    return TokenIssuer(security_config, clock=clock)


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def storage_service(tmp_path) -> StorageService:
    return StorageService(upload_dir=tmp_path / "uploads", max_bytes=1024)


@pytest.fixture
def account_service(
    persistence, credential_store, token_issuer, security_config, email_service, clock
) -> AccountService:
    return AccountService(
        persistence=persistence,
        credentials=credential_store,
        token_issuer=token_issuer,
        verification_tokens=SecretTokenGenerator(security_config.verification_ttl, clock=clock),
        reset_tokens=SecretTokenGenerator(security_config.reset_ttl, clock=clock),
        email_service=email_service,
        clock=clock,
    )


@pytest.fixture
def profile_service(persistence, storage_service) -> ProfileService:
    return ProfileService(persistence, storage_service)


@pytest.fixture
def make_user(account_service):
    """Register an account through the workflow and return it."""

    def _make_user(name: str = "Alice", email: str = "alice@example.com", password: str = "secret1"):
        return account_service.register(name=name, email=email, password=password).user

    return _make_user


@pytest.fixture
def app_settings(tmp_path, monkeypatch) -> Settings:
    for key in ("SMTP_HOST", "SMTP_USERNAME", "S3_BUCKET_NAME", "COOKIE_DOMAIN", "CORS_ALLOW_ORIGINS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "1024")
    return Settings()


@pytest.fixture
def client(app_settings):
    with TestClient(create_application(app_settings)) as test_client:
        yield test_client


@pytest.fixture
def container(client):
    return client.app.state.container


@pytest.fixture
def register(client):
    """Register through the HTTP API and return the response."""

    def _register(
        name: str = "Alice",
        email: str = "a@x.com",
        password: str = "secret1",
        **extra,
    ):
        return client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password, **extra},
        )

    return _register
