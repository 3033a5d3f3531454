"""Unit tests for the profile service."""

import asyncio

import pytest

from viziopath.core.errors import BadRequestError, ForbiddenError, NotFoundError, PayloadTooLargeError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def alice(make_user):
    return make_user(name="Alice", email="alice@example.com")


@pytest.fixture
def bob(make_user):
    return make_user(name="Bob", email="bob@example.com")


class TestProfileAccess:
    def test_own_profile_is_created_lazily(self, profile_service, persistence, alice):
        assert persistence.get_profile(alice.id) is None

        profile = profile_service.get_my_profile(alice.id)

        assert profile.user_id == alice.id
        assert profile.preferences["privacy"]["profileVisibility"] == "public"
        assert profile_service.get_my_profile(alice.id).id == profile.id

    def test_missing_profile_is_not_found(self, profile_service, alice, bob):
        with pytest.raises(NotFoundError) as exc_info:
            profile_service.get_profile(alice.id, bob.id)
        assert exc_info.value.message == "Profile not found"

    def test_viewing_other_profile_counts_views(self, profile_service, persistence, alice, bob):
        profile_service.get_my_profile(bob.id)

        first = profile_service.get_profile(alice.id, bob.id)
        second = profile_service.get_profile(alice.id, bob.id)
        own = profile_service.get_profile(bob.id, bob.id)

        assert first.stats.profile_views == 1
        assert second.stats.profile_views == 2
        assert own.stats.profile_views == 2
        assert persistence.get_profile(bob.id).stats.profile_views == 2

    def test_private_profile_is_hidden_from_others(self, profile_service, alice, bob):
        profile_service.update_profile(bob.id, {"preferences": {"privacy": {"profileVisibility": "private"}}})

        with pytest.raises(ForbiddenError):
            profile_service.get_profile(alice.id, bob.id)
        assert profile_service.get_profile(bob.id, bob.id).visibility == "private"


class TestProfileUpdates:
    def test_update_deduplicates_skills(self, profile_service, alice):
        profile = profile_service.update_profile(
            alice.id, {"skills": ["python", " sql ", "python", ""], "job_title": "Engineer"}
        )

        assert profile.skills == ["python", "sql"]
        assert profile.job_title == "Engineer"

    def test_update_merges_preferences(self, profile_service, alice):
        profile = profile_service.update_profile(alice.id, {"preferences": {"theme": "dark"}})

        assert profile.preferences["theme"] == "dark"
        assert profile.preferences["notifications"]["marketing"] is False

    def test_avatar_url_is_required(self, profile_service, alice):
        with pytest.raises(BadRequestError):
            profile_service.update_avatar(alice.id, "")

        profile = profile_service.update_avatar(alice.id, "https://cdn.example.com/a.png")
        assert profile.avatar == "https://cdn.example.com/a.png"

    def test_upload_avatar_stores_locally(self, profile_service, storage_service, alice):
        profile = asyncio.run(profile_service.upload_avatar(alice.id, "image/png", PNG_BYTES))

        assert profile.avatar.startswith("/uploads/avatars/")
        stored = storage_service.upload_dir / profile.avatar[len("/uploads/"):]
        assert stored.read_bytes() == PNG_BYTES

    def test_upload_avatar_validates_type_and_size(self, profile_service, alice):
        with pytest.raises(BadRequestError):
            asyncio.run(profile_service.upload_avatar(alice.id, "application/pdf", PNG_BYTES))
        with pytest.raises(PayloadTooLargeError):
            asyncio.run(profile_service.upload_avatar(alice.id, "image/png", b"x" * 2048))

    def test_delete_profile(self, profile_service, persistence, alice):
        profile_service.get_my_profile(alice.id)

        profile_service.delete_profile(alice.id)

        assert persistence.get_profile(alice.id) is None


class TestDiscovery:
    def test_search_filters_and_paginates(self, profile_service, make_user):
        for index in range(3):
            user = make_user(name=f"Dev {index}", email=f"dev{index}@example.com")
            profile_service.update_profile(user.id, {"skills": ["python"], "location": "Berlin"})
        hidden = make_user(name="Hidden Dev", email="hidden@example.com")
        profile_service.update_profile(
            hidden.id,
            {"skills": ["python"], "preferences": {"privacy": {"profileVisibility": "private"}}},
        )

        result = profile_service.search_profiles(query="dev", skills="python, go", location="berlin", limit=2)

        assert result["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
        assert len(result["profiles"]) == 2
        page_two = profile_service.search_profiles(query="dev", page=2, limit=2)
        assert len(page_two["profiles"]) == 1

    def test_search_orders_by_views(self, profile_service, alice, bob):
        profile_service.update_profile(alice.id, {"company": "Acme"})
        profile_service.update_profile(bob.id, {"company": "Acme Labs"})
        profile_service.get_profile(alice.id, bob.id)

        result = profile_service.search_profiles(company="acme")

        assert [profile.user_id for profile in result["profiles"]] == [bob.id, alice.id]

    def test_suggestions_share_skills_and_exclude_caller(self, profile_service, make_user, alice):
        profile_service.update_profile(alice.id, {"skills": ["python"]})
        match = make_user(name="Match", email="match@example.com")
        profile_service.update_profile(match.id, {"skills": ["python", "rust"]})
        other = make_user(name="Other", email="other@example.com")
        profile_service.update_profile(other.id, {"skills": ["cobol"]})

        suggestions = profile_service.suggest_profiles(alice.id)

        assert [profile.user_id for profile in suggestions] == [match.id]


class TestDeletedAccount:
    @pytest.fixture
    def deleted_id(self, alice, persistence):
        persistence.delete_user(alice.id)
        return alice.id

    def test_profile_writes_report_missing_account(self, profile_service, deleted_id):
        for call in (
            lambda: profile_service.get_my_profile(deleted_id),
            lambda: profile_service.update_profile(deleted_id, {"bio": "still here?"}),
            lambda: profile_service.update_avatar(deleted_id, "https://cdn.example.com/a.png"),
        ):
            with pytest.raises(NotFoundError) as exc_info:
                call()
            assert exc_info.value.message == "User not found"

    def test_upload_for_missing_account_stores_nothing(self, profile_service, storage_service, deleted_id):
        with pytest.raises(NotFoundError):
            asyncio.run(profile_service.upload_avatar(deleted_id, "image/png", PNG_BYTES))

        assert not (storage_service.upload_dir / "avatars").exists()
