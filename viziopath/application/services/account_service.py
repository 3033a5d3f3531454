from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ...core.errors import (
    BadRequestError,
    ConflictError,
    LockedError,
    NotFoundError,
    UnauthorizedError,
)
from ...domain.models import User
from ...domain.models.user import merge_preferences
from ...domain.ports.persistence import DuplicateEmailError, PersistenceGateway
from ...services.credential_store import Clock, CredentialStore, utc_now
from ...services.email_service import EmailService
from ...services.secret_tokens import SecretTokenGenerator
from ...services.token_issuer import TokenIssuer

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Registration successful. Please check your email to verify your account."
REGISTERED_NO_EMAIL_MESSAGE = (
    "Registration successful, but we could not send a verification email. Please try again later."
)
RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent."
VERIFICATION_SENT_MESSAGE = "Verification email sent"
VERIFICATION_NOT_SENT_MESSAGE = "We could not send a verification email. Please try again later."


@dataclass(slots=True)
class AuthResult:
    user: User
    token: str
    message: str


class AccountService:
    """Coordinates registration, login, recovery and deletion of accounts."""

    def __init__(
        self,
        persistence: PersistenceGateway,
        credentials: CredentialStore,
        token_issuer: TokenIssuer,
        verification_tokens: SecretTokenGenerator,
        reset_tokens: SecretTokenGenerator,
        email_service: EmailService,
        clock: Optional[Clock] = None,
    ) -> None:
        self._persistence = persistence
        self._credentials = credentials
        self._tokens = token_issuer
        self._verification_tokens = verification_tokens
        self._reset_tokens = reset_tokens
        self._email = email_service
        self._clock = clock or utc_now

    # Sessions -------------------------------------------------------------
    def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
    ) -> AuthResult:
        email_clean = email.strip().lower()
        if self._persistence.get_user_by_email(email_clean):
            raise ConflictError("Email already registered")

        verification_token, expires_at = self._verification_tokens.generate()
        try:
            user = self._persistence.create_user(
                name=name.strip(),
                email=email_clean,
                password_hash=self._credentials.hash_password(password),
                phone=phone,
                verification_token=verification_token,
                verification_expires_at=expires_at,
            )
        except DuplicateEmailError as exc:
            raise ConflictError("Email already registered") from exc
        logger.info("Registered account %s", user.id)

        email_sent = self._email.send_verification_email(user.email, user.name, verification_token)
        if not email_sent:
            logger.warning("Verification email for account %s could not be delivered", user.id)
        message = REGISTERED_MESSAGE if email_sent else REGISTERED_NO_EMAIL_MESSAGE
        return AuthResult(user=user, token=self._tokens.issue(user.id), message=message)

    def login(self, email: str, password: str) -> AuthResult:
        user = self._persistence.get_user_by_email(email.strip().lower())
        if not user:
            raise UnauthorizedError("Invalid credentials")
        if self._credentials.is_locked(user):
            raise LockedError()
        if not self._credentials.verify_password(user, password):
            self._credentials.record_failure(user)
            raise UnauthorizedError("Invalid credentials")

        user = self._credentials.record_success(user)
        logger.info("Account %s logged in", user.id)
        return AuthResult(user=user, token=self._tokens.issue(user.id), message="Login successful")

    def authenticate(self, token: str) -> int:
        return self._tokens.verify(token)

    def logout(self, user_id: int) -> None:
        # Tokens are stateless; the caller drops the cookie.
        logger.info("Account %s logged out", user_id)

    # Account data ---------------------------------------------------------
    def get_account(self, user_id: int) -> User:
        user = self._persistence.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_account(
        self,
        user_id: int,
        *,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        preferences: Optional[Dict[str, Any]] = None,
        profile_fields: Optional[Dict[str, Any]] = None,
    ) -> User:
        user = self.get_account(user_id)
        merged = merge_preferences(user.preferences, preferences) if preferences else None
        updated = self._persistence.update_user(
            user.id,
            name=name.strip() if name else None,
            phone=phone,
            preferences=merged,
        )
        if profile_fields:
            self._persistence.update_profile(user.id, profile_fields)
        return updated

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = self.get_account(user_id)
        if not self._credentials.verify_password(user, current_password):
            raise BadRequestError("Current password is incorrect")
        self._credentials.set_password(user, new_password)
        logger.info("Account %s changed its password", user.id)

    def delete_account(self, user_id: int, password: str) -> None:
        user = self.get_account(user_id)
        if not self._credentials.verify_password(user, password):
            raise BadRequestError("Password is incorrect")
        self._persistence.delete_user(user.id)
        logger.info("Account %s deleted together with its profile", user.id)

    # Recovery & verification ----------------------------------------------
    def forgot_password(self, email: str) -> str:
        """Issue a reset secret when the account exists; the reply never tells which."""
        user = self._persistence.get_user_by_email(email.strip().lower())
        if not user:
            return RESET_REQUESTED_MESSAGE

        reset_token, expires_at = self._reset_tokens.generate()
        self._persistence.set_reset_token(user.id, reset_token, expires_at)
        if not self._email.send_password_reset_email(user.email, user.name, reset_token):
            logger.warning("Password reset email for account %s could not be delivered", user.id)
        return RESET_REQUESTED_MESSAGE

    def reset_password(self, token: str, new_password: str) -> User:
        if not token or self._persistence.get_user_by_reset_token(token, self._now()) is None:
            raise BadRequestError("Invalid or expired reset token")
        password_hash = self._credentials.hash_password(new_password)
        user = self._persistence.consume_reset_token(token, password_hash, self._now())
        if not user:
            raise BadRequestError("Invalid or expired reset token")
        logger.info("Account %s reset its password", user.id)
        return user

    def verify_email(self, token: str) -> User:
        if not token:
            raise BadRequestError("Invalid or expired verification token")
        user = self._persistence.consume_verification_token(token, self._now())
        if not user:
            raise BadRequestError("Invalid or expired verification token")
        logger.info("Account %s verified its email", user.id)
        self._email.send_welcome_email(user.email, user.name)
        return user

    def resend_verification(self, email: str) -> str:
        user = self._persistence.get_user_by_email(email.strip().lower())
        if not user:
            raise NotFoundError("User not found")
        if user.is_verified:
            raise BadRequestError("Email is already verified")

        verification_token, expires_at = self._verification_tokens.generate()
        self._persistence.set_verification_token(user.id, verification_token, expires_at)
        if not self._email.send_verification_email(user.email, user.name, verification_token):
            logger.warning("Verification email for account %s could not be delivered", user.id)
            return VERIFICATION_NOT_SENT_MESSAGE
        return VERIFICATION_SENT_MESSAGE

    def _now(self) -> datetime:
        return self._clock()
