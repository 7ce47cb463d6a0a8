from datetime import timedelta

import pytest

from taskdesk.domain.errors import (
    AccountLockedError,
    AccountNotActiveError,
    CurrentPasswordIncorrectError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    OperationNotAllowedError,
    OutOfBandTokenInvalidError,
    ValidationError,
)
from taskdesk.domain.models import UserRole, UserStatus


@pytest.fixture
def alice(account_service):
    return account_service.register(email="alice@example.com", password="Password123", first_name="Alice")


class TestRegistration:
    def test_register_creates_unverified_user_with_tokens(self, account_service, token_service, alice):
        assert alice.user.email == "alice@example.com"
        assert alice.user.role is UserRole.USER
        assert alice.user.is_email_verified is False
        assert len(alice.verification_token) == 64
        assert token_service.verify_token(alice.token).id == alice.user.id

    def test_password_is_stored_hashed(self, persistence, alice):
        stored = persistence.get_user_by_id(alice.user.id, include_password=True)
        assert stored.password_hash != "Password123"
        assert stored.password_hash.startswith("$2b$")

    def test_duplicate_email_is_rejected_case_insensitively(self, account_service, alice):
        with pytest.raises(EmailAlreadyRegisteredError):
            account_service.register(email="ALICE@example.com", password="Password123")

    def test_weak_password_is_rejected(self, account_service):
        with pytest.raises(ValidationError):
            account_service.register(email="bob@example.com", password="short")


class TestAuthentication:
    def test_login_success_records_last_login(self, account_service, clock, alice):
        result = account_service.authenticate("Alice@Example.com", "Password123")
        assert result.user.last_login == clock()
        assert result.token

    def test_unknown_email_and_wrong_password_look_the_same(self, account_service, alice):
        with pytest.raises(InvalidCredentialsError) as unknown:
            account_service.authenticate("nobody@example.com", "Password123")
        with pytest.raises(InvalidCredentialsError) as wrong:
            account_service.authenticate("alice@example.com", "WrongPass1")
        assert unknown.value.message == wrong.value.message

    def test_fifth_failure_locks_and_correct_password_is_then_refused(
        self, account_service, persistence, clock, alice
    ):
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                account_service.authenticate("alice@example.com", "WrongPass1")
        stored = persistence.get_user_by_id(alice.user.id)
        assert stored.login_attempts == 5
        assert stored.lock_until == clock() + timedelta(hours=2)

        with pytest.raises(AccountLockedError):
            account_service.authenticate("alice@example.com", "Password123")

    def test_lock_expires_and_success_resets_counter(self, account_service, persistence, clock, alice):
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                account_service.authenticate("alice@example.com", "WrongPass1")
        clock.advance(hours=2, seconds=1)
        result = account_service.authenticate("alice@example.com", "Password123")
        assert result.user.login_attempts == 0
        assert result.user.lock_until is None

    def test_failure_after_expired_lock_counts_from_one(self, account_service, persistence, clock, alice):
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                account_service.authenticate("alice@example.com", "WrongPass1")
        clock.advance(hours=3)
        with pytest.raises(InvalidCredentialsError):
            account_service.authenticate("alice@example.com", "WrongPass1")
        stored = persistence.get_user_by_id(alice.user.id)
        assert stored.login_attempts == 1
        assert stored.lock_until is None

    def test_success_clears_partial_failures(self, account_service, alice):
        for _ in range(3):
            with pytest.raises(InvalidCredentialsError):
                account_service.authenticate("alice@example.com", "WrongPass1")
        assert account_service.authenticate("alice@example.com", "Password123").user.login_attempts == 0

    def test_suspended_account_cannot_log_in(self, account_service, persistence, alice):
        persistence.update_user(alice.user.id, status=UserStatus.SUSPENDED)
        with pytest.raises(AccountNotActiveError):
            account_service.authenticate("alice@example.com", "Password123")


class TestEmailVerification:
    def test_verify_once(self, account_service, alice):
        assert account_service.verify_email(alice.verification_token).is_email_verified is True
        with pytest.raises(OutOfBandTokenInvalidError):
            account_service.verify_email(alice.verification_token)

    def test_verification_token_expires_after_24_hours(self, account_service, clock, alice):
        clock.advance(hours=24, seconds=1)
        with pytest.raises(OutOfBandTokenInvalidError):
            account_service.verify_email(alice.verification_token)

    def test_resend_replaces_pending_token(self, account_service, alice):
        _, fresh = account_service.resend_verification(alice.user.id)
        with pytest.raises(OutOfBandTokenInvalidError):
            account_service.verify_email(alice.verification_token)
        assert account_service.verify_email(fresh).is_email_verified is True

    def test_resend_refused_once_verified(self, account_service, alice):
        account_service.verify_email(alice.verification_token)
        with pytest.raises(OperationNotAllowedError):
            account_service.resend_verification(alice.user.id)


class TestPasswordRecovery:
    def test_unknown_email_issues_nothing(self, account_service):
        assert account_service.request_password_reset("nobody@example.com") is None

    def test_reset_changes_password_once(self, account_service, alice):
        _, token = account_service.request_password_reset("alice@example.com")
        account_service.reset_password(token, "NewPassword1")
        assert account_service.authenticate("alice@example.com", "NewPassword1").user.id == alice.user.id
        with pytest.raises(OutOfBandTokenInvalidError):
            account_service.reset_password(token, "OtherPassword1")

    def test_reset_token_expires_after_one_hour(self, account_service, clock, alice):
        _, token = account_service.request_password_reset("alice@example.com")
        clock.advance(hours=1, seconds=1)
        with pytest.raises(OutOfBandTokenInvalidError):
            account_service.reset_password(token, "NewPassword1")

    def test_weak_new_password_does_not_consume_token(self, account_service, alice):
        _, token = account_service.request_password_reset("alice@example.com")
        with pytest.raises(ValidationError):
            account_service.reset_password(token, "short")
        account_service.reset_password(token, "NewPassword1")

    def test_change_password_requires_current(self, account_service, alice):
        with pytest.raises(CurrentPasswordIncorrectError):
            account_service.change_password(alice.user.id, "WrongPass1", "NewPassword1")
        account_service.change_password(alice.user.id, "Password123", "NewPassword1")
        assert account_service.authenticate("alice@example.com", "NewPassword1")


class TestProfile:
    def test_update_profile_trims_and_ignores_blank(self, account_service, alice):
        updated = account_service.update_profile(alice.user.id, first_name="  Alicia ", last_name="")
        assert updated.first_name == "Alicia"

    def test_profile_cannot_change_role(self, account_service, alice):
        with pytest.raises(ValidationError):
            account_service.update_profile(alice.user.id, role=UserRole.ADMIN)
