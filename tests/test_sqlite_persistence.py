"""Tests for the SQLite persistence gateway."""

from datetime import datetime, timedelta, timezone

import pytest

from viziopath.domain.models import Role
from viziopath.domain.ports.persistence import AccountNotFoundError, DuplicateEmailError


@pytest.fixture
def user(persistence):
    return persistence.create_user(
        name="Alice",
        email="Alice@Example.com",
        password_hash="$2b$04$hash",
        verification_token="verify-token",
        verification_expires_at=datetime.now(timezone.utc) + timedelta(hours=24),
    )


def test_create_user_normalises_email_and_defaults(user, persistence):
    assert user.email == "alice@example.com"
    assert user.is_verified is False
    assert user.login_attempts == 0
    assert user.preferences["theme"] == "auto"
    assert persistence.get_user_by_email("ALICE@example.com ").id == user.id


def test_duplicate_email_raises(user, persistence):
    with pytest.raises(DuplicateEmailError):
        persistence.create_user(name="Other", email="alice@example.com", password_hash="x")


def test_consume_verification_token_clears_fields(user, persistence):
    now = datetime.now(timezone.utc)

    verified = persistence.consume_verification_token("verify-token", now)

    assert verified.is_verified is True
    assert verified.verification_token is None
    assert verified.verification_expires_at is None
    assert persistence.consume_verification_token("verify-token", now) is None


def test_consume_verification_token_respects_expiry(user, persistence):
    later = datetime.now(timezone.utc) + timedelta(hours=25)

    assert persistence.consume_verification_token("verify-token", later) is None
    assert persistence.get_user_by_id(user.id).is_verified is False


def test_consume_reset_token_swaps_password(user, persistence):
    expires = datetime.now(timezone.utc) + timedelta(hours=1)
    persistence.set_reset_token(user.id, "reset-token", expires)

    updated = persistence.consume_reset_token("reset-token", "$2b$04$new", datetime.now(timezone.utc))

    assert updated.password_hash == "$2b$04$new"
    assert updated.reset_password_token is None
    assert persistence.consume_reset_token("reset-token", "$2b$04$other", datetime.now(timezone.utc)) is None


def test_tokens_are_bound_to_their_purpose(user, persistence):
    now = datetime.now(timezone.utc)

    assert persistence.consume_reset_token("verify-token", "$2b$04$new", now) is None


def test_profile_is_created_with_defaults_and_owner(user, persistence):
    profile = persistence.create_profile(user.id)

    assert profile.user_id == user.id
    assert profile.skills == []
    assert profile.visibility == "public"
    assert profile.owner.name == "Alice"
    assert profile.to_dict()["user"]["email"] == "alice@example.com"


def test_profile_writes_for_unknown_user_fail(persistence):
    with pytest.raises(AccountNotFoundError):
        persistence.create_profile(404)
    with pytest.raises(AccountNotFoundError):
        persistence.update_profile(404, {"bio": "orphan"})
    assert persistence.get_profile(404) is None


def test_update_profile_upserts(user, persistence):
    profile = persistence.update_profile(user.id, {"bio": "Hello", "skills": ["python"]})

    assert profile.bio == "Hello"
    assert profile.skills == ["python"]
    assert persistence.create_profile(user.id).bio == "Hello"


def test_increment_profile_views(user, persistence):
    persistence.create_profile(user.id)

    persistence.increment_profile_views(user.id)
    persistence.increment_profile_views(user.id)

    assert persistence.get_profile(user.id).stats.profile_views == 2


def test_delete_user_removes_profile(user, persistence):
    persistence.create_profile(user.id)

    assert persistence.delete_user(user.id) is True
    assert persistence.get_profile(user.id) is None
    assert persistence.delete_user(user.id) is False


def test_search_escapes_like_wildcards(user, persistence):
    persistence.update_profile(user.id, {"bio": "100% remote"})
    other = persistence.create_user(name="Bob", email="bob@example.com", password_hash="x")
    persistence.update_profile(other.id, {"bio": "1000 things"})

    profiles, total = persistence.search_profiles(query="100%")

    assert total == 1
    assert profiles[0].user_id == user.id


def test_create_user_with_role_and_verified_flag(persistence):
    admin = persistence.create_user(
        name="Admin",
        email="admin@example.com",
        password_hash="x",
        role=Role.ADMIN,
        is_verified=True,
    )

    assert admin.role is Role.ADMIN
    assert admin.is_verified is True


def test_get_user_by_reset_token_respects_expiry(user, persistence):
    now = datetime.now(timezone.utc)
    persistence.set_reset_token(user.id, "reset-token", now + timedelta(hours=1))

    assert persistence.get_user_by_reset_token("reset-token", now).id == user.id
    assert persistence.get_user_by_reset_token("reset-token", now + timedelta(hours=2)) is None
    assert persistence.get_user_by_reset_token("verify-token", now) is None
