from datetime import datetime, timedelta, timezone

from taskdesk.domain.lockout import LockoutPolicy, is_locked, lock_expired
from taskdesk.domain.models import User

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_user(login_attempts=0, lock_until=None) -> User:
    return User(id=1, email="alice@example.com", login_attempts=login_attempts, lock_until=lock_until)


class TestLockoutPolicy:
    def test_failures_below_threshold_only_count(self):
        state = LockoutPolicy().after_failure(make_user(login_attempts=3), NOW)
        assert state.login_attempts == 4
        assert state.lock_until is None

    def test_fifth_failure_locks_for_two_hours(self):
        state = LockoutPolicy().after_failure(make_user(login_attempts=4), NOW)
        assert state.login_attempts == 5
        assert state.lock_until == NOW + timedelta(hours=2)

    def test_failure_while_locked_does_not_extend_lock(self):
        lock_until = NOW + timedelta(minutes=30)
        state = LockoutPolicy().after_failure(make_user(login_attempts=5, lock_until=lock_until), NOW)
        assert state.login_attempts == 6
        assert state.lock_until == lock_until

    def test_failure_after_expired_lock_starts_a_new_run(self):
        user = make_user(login_attempts=5, lock_until=NOW - timedelta(seconds=1))
        state = LockoutPolicy().after_failure(user, NOW)
        assert state.login_attempts == 1
        assert state.lock_until is None

    def test_single_attempt_threshold_relocks_after_expiry(self):
        policy = LockoutPolicy(max_attempts=1)
        user = make_user(login_attempts=1, lock_until=NOW - timedelta(seconds=1))
        state = policy.after_failure(user, NOW)
        assert state.login_attempts == 1
        assert state.lock_until == NOW + timedelta(hours=2)

    def test_success_resets_state(self):
        state = LockoutPolicy.after_success()
        assert state.login_attempts == 0
        assert state.lock_until is None

    def test_custom_threshold_and_duration(self):
        policy = LockoutPolicy(max_attempts=2, lock_duration=timedelta(minutes=5))
        state = policy.after_failure(make_user(login_attempts=1), NOW)
        assert state.lock_until == NOW + timedelta(minutes=5)


class TestLockState:
    def test_lock_in_future_is_locked(self):
        user = make_user(lock_until=NOW + timedelta(seconds=1))
        assert is_locked(user, NOW)
        assert not lock_expired(user, NOW)

    def test_lock_at_or_before_now_is_open(self):
        user = make_user(lock_until=NOW)
        assert not is_locked(user, NOW)
        assert lock_expired(user, NOW)

    def test_no_lock(self):
        user = make_user()
        assert not is_locked(user, NOW)
        assert not lock_expired(user, NOW)
