"""Unit tests for password hashing and the login lockout state machine."""

from datetime import timedelta


class TestPasswordHashing:
    def test_stored_hash_never_equals_plaintext(self, make_user, credential_store):
        user = make_user(password="secret1")

        assert user.password_hash != "secret1"
        assert user.password_hash.startswith("$2")
        assert credential_store.verify_password(user, "secret1") is True

    def test_verify_rejects_wrong_and_empty_passwords(self, make_user, credential_store):
        user = make_user()

        assert credential_store.verify_password(user, "wrong-password") is False
        assert credential_store.verify_password(user, "") is False

    def test_verify_returns_false_for_malformed_hash(self, make_user, credential_store):
        user = make_user()
        user.password_hash = "not-a-bcrypt-hash"

        assert credential_store.verify_password(user, "secret1") is False

    def test_set_password_only_matches_latest(self, make_user, credential_store, persistence):
        user = make_user(password="secret1")

        assert credential_store.set_password(user, "secret2") is True
        assert credential_store.set_password(user, "secret3") is True

        stored = persistence.get_user_by_id(user.id)
        assert credential_store.verify_password(stored, "secret3") is True
        assert credential_store.verify_password(stored, "secret2") is False
        assert credential_store.verify_password(stored, "secret1") is False

    def test_set_password_is_noop_when_unchanged(self, make_user, credential_store, persistence):
        user = make_user()
        original_hash = user.password_hash

        assert credential_store.set_password(user, None) is False
        assert credential_store.set_password(user, original_hash) is False
        assert persistence.get_user_by_id(user.id).password_hash == original_hash


class TestLockout:
    def test_failures_below_threshold_do_not_lock(self, make_user, credential_store):
        user = make_user()

        for _ in range(4):
            user = credential_store.record_failure(user)

        assert user.login_attempts == 4
        assert user.lock_until is None
        assert credential_store.is_locked(user) is False

    def test_fifth_failure_locks_for_two_hours(self, make_user, credential_store, clock):
        user = make_user()

        for _ in range(5):
            user = credential_store.record_failure(user)

        assert user.login_attempts == 5
        assert user.lock_until == clock.now + timedelta(hours=2)
        assert credential_store.is_locked(user) is True

    def test_lock_expires_after_window(self, make_user, credential_store, clock):
        user = make_user()
        for _ in range(5):
            user = credential_store.record_failure(user)

        clock.advance(timedelta(hours=2))

        assert credential_store.is_locked(user) is False

    def test_failure_after_expired_lock_starts_fresh_window(self, make_user, credential_store, clock):
        user = make_user()
        for _ in range(5):
            user = credential_store.record_failure(user)
        clock.advance(timedelta(hours=2, seconds=1))

        user = credential_store.record_failure(user)

        assert user.login_attempts == 1
        assert user.lock_until is None
        assert credential_store.is_locked(user) is False

    def test_success_clears_attempts_and_lock(self, make_user, credential_store, clock):
        user = make_user()
        for _ in range(3):
            user = credential_store.record_failure(user)

        user = credential_store.record_success(user)

        assert user.login_attempts == 0
        assert user.lock_until is None
        assert user.last_login == clock.now

    def test_is_locked_is_derived_from_lock_until(self, make_user, credential_store, clock):
        user = make_user()
        user.lock_until = clock.now + timedelta(minutes=1)
        assert credential_store.is_locked(user) is True

        user.lock_until = clock.now - timedelta(minutes=1)
        assert credential_store.is_locked(user) is False
