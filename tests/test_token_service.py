from datetime import datetime, timedelta, timezone

import jwt
import pytest

from conftest import TEST_SECRET
from taskdesk.application.services.token_service import TokenService
from taskdesk.domain.errors import AccountNotActiveError, TokenInvalidError
from taskdesk.domain.models import UserRole, UserStatus


@pytest.fixture
def user(persistence, hasher):
    return persistence.create_user(email="alice@example.com", password_hash=hasher.hash("Password123"))


class TestTokenService:
    def test_issued_token_resolves_to_user(self, token_service, user):
        token = token_service.issue_token(user)
        assert token_service.verify_token(token).id == user.id

    def test_payload_carries_subject_and_role(self, token_service, user):
        token = token_service.issue_token(user)
        assert token_service.decode_token(token) == user.id
        payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
        assert payload["sub"] == str(user.id)
        assert payload["role"] == UserRole.USER.value

    def test_expiry_follows_service_clock(self, token_service, clock, user):
        token = token_service.issue_token(user)
        clock.advance(days=7, seconds=-1)
        assert token_service.verify_token(token).id == user.id
        clock.advance(seconds=2)
        with pytest.raises(TokenInvalidError):
            token_service.verify_token(token)

    def test_token_issued_on_advanced_clock_is_accepted(self, token_service, clock, user):
        clock.advance(days=3)
        token = token_service.issue_token(user)
        assert token_service.verify_token(token).id == user.id

    def test_default_lifetime_is_seven_days(self, token_service, user):
        payload = jwt.decode(token_service.issue_token(user), TEST_SECRET, algorithms=["HS256"])
        assert payload["exp"] - payload["iat"] == int(timedelta(days=7).total_seconds())

    def test_expired_token_is_rejected(self, persistence, user):
        past = datetime.now(timezone.utc) - timedelta(days=8)
        issuer = TokenService(users=persistence, secret_key=TEST_SECRET, clock=lambda: past)
        token = issuer.issue_token(user)
        with pytest.raises(TokenInvalidError):
            TokenService(users=persistence, secret_key=TEST_SECRET).verify_token(token)

    def test_token_signed_with_other_secret_is_rejected(self, persistence, token_service, user):
        forged = TokenService(users=persistence, secret_key="other-secret").issue_token(user)
        with pytest.raises(TokenInvalidError):
            token_service.verify_token(forged)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token_is_rejected(self, token_service, token):
        with pytest.raises(TokenInvalidError):
            token_service.verify_token(token)

    def test_token_without_subject_is_rejected(self, token_service):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(hours=1)}, TEST_SECRET, algorithm="HS256"
        )
        with pytest.raises(TokenInvalidError):
            token_service.verify_token(token)

    def test_deleted_user_is_rejected(self, persistence, token_service, user):
        token = token_service.issue_token(user)
        persistence.delete_user(user.id)
        with pytest.raises(TokenInvalidError):
            token_service.verify_token(token)

    @pytest.mark.parametrize("status", [UserStatus.SUSPENDED, UserStatus.INACTIVE])
    def test_non_active_user_is_rejected_while_token_is_unexpired(
        self, persistence, token_service, user, status
    ):
        token = token_service.issue_token(user)
        persistence.update_user(user.id, status=status)
        with pytest.raises(AccountNotActiveError):
            token_service.verify_token(token)

    def test_empty_secret_is_refused(self, persistence):
        with pytest.raises(RuntimeError):
            TokenService(users=persistence, secret_key="")
