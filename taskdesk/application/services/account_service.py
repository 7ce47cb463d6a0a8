"""Self-service account workflows: registration, login, verification and password recovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ...core.clock import Clock, utc_now
from ...domain.errors import (
    AccountLockedError,
    AccountNotActiveError,
    CurrentPasswordIncorrectError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    OperationNotAllowedError,
    OutOfBandTokenInvalidError,
    UserNotFoundError,
    ValidationError,
)
from ...domain.lockout import LockoutPolicy, is_locked
from ...domain.models import User
from ...domain.one_time_token import DEFAULT_TTL, TokenPurpose, digest_token, issue_one_time_token
from ...domain.ports.persistence import UserRepository
from ...domain.validation import normalize_email, validate_password, validate_profile
from .password_hasher import PasswordHasher
from .token_service import TokenService

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "phone", "department", "position", "date_of_birth")


@dataclass(slots=True)
class RegistrationResult:
    user: User
    token: str
    verification_token: str


@dataclass(slots=True)
class LoginResult:
    user: User
    token: str


class AccountService:
    """Service for account authentication and self-service management."""

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
        lockout: Optional[LockoutPolicy] = None,
        verification_ttl: timedelta = DEFAULT_TTL[TokenPurpose.EMAIL_VERIFICATION],
        reset_ttl: timedelta = DEFAULT_TTL[TokenPurpose.PASSWORD_RESET],
        clock: Clock = utc_now,
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens
        self._lockout = lockout or LockoutPolicy()
        self._verification_ttl = verification_ttl
        self._reset_ttl = reset_ttl
        self._clock = clock

    # Registration -----------------------------------------------------------
    def register(
        self,
        *,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
        date_of_birth: Optional[date] = None,
    ) -> RegistrationResult:
        """
        Register a new, unverified account.

        Returns:
            The stored user, a session token and the email verification token

        Raises:
            ValidationError: Weak password or malformed profile fields
            EmailAlreadyRegisteredError: The email is already in use
        """
        now = self._clock()
        email_clean = normalize_email(email)
        validate_password(password)
        profile = validate_profile(
            {
                "first_name": first_name,
                "last_name": last_name,
                "phone": phone,
                "department": department,
                "position": position,
                "date_of_birth": date_of_birth,
            },
            today=now.date(),
        )
        if self._users.get_user_by_email(email_clean):
            raise EmailAlreadyRegisteredError()

        verification = issue_one_time_token(TokenPurpose.EMAIL_VERIFICATION, now, self._verification_ttl)
        user = self._users.create_user(
            email=email_clean,
            password_hash=self._hasher.hash(password),
            verification_digest=verification.digest,
            verification_expires_at=verification.expires_at,
            **profile,
        )
        logger.info("Registered user %s (id=%s)", user.email, user.id)
        return RegistrationResult(
            user=user,
            token=self._tokens.issue_token(user),
            verification_token=verification.token,
        )

    # Login -----------------------------------------------------------------
    def authenticate(self, email: str, password: str) -> LoginResult:
        """
        Check credentials against the lockout policy and issue a session token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            AccountLockedError: The account is locked; the password is not checked
            AccountNotActiveError: The account is inactive or suspended
        """
        now = self._clock()
        user = self._users.get_user_by_email(normalize_email(email), include_password=True)
        if not user or not user.password_hash:
            self._hasher.dummy_verify(password)
            raise InvalidCredentialsError()

        if is_locked(user, now):
            raise AccountLockedError()
        if not user.is_active:
            raise AccountNotActiveError()

        if not self._hasher.verify(password, user.password_hash):
            state = self._lockout.after_failure(user, now)
            self._users.update_login_state(user.id, state.login_attempts, state.lock_until)
            if state.lock_until is not None and state.lock_until != user.lock_until:
                logger.warning(
                    "Locked user %s after %s failed login attempts", user.id, state.login_attempts
                )
            raise InvalidCredentialsError()

        user = self._users.record_successful_login(user.id, now)
        logger.info("User %s logged in", user.id)
        return LoginResult(user=user, token=self._tokens.issue_token(user))

    # Email verification ----------------------------------------------------------
    def verify_email(self, token: str) -> User:
        if not token:
            raise OutOfBandTokenInvalidError("Invalid or expired verification token")
        user = self._users.consume_email_verification_token(digest_token(token), self._clock())
        if not user:
            raise OutOfBandTokenInvalidError("Invalid or expired verification token")
        logger.info("Verified email for user %s", user.id)
        return user

    def resend_verification(self, user_id: int) -> tuple[User, str]:
        """Issue a fresh verification token, replacing any pending one."""
        user = self._require_user(user_id)
        if user.is_email_verified:
            raise OperationNotAllowedError("Email is already verified")
        verification = issue_one_time_token(
            TokenPurpose.EMAIL_VERIFICATION, self._clock(), self._verification_ttl
        )
        self._users.set_email_verification_token(user.id, verification.digest, verification.expires_at)
        return user, verification.token

    # Password recovery -----------------------------------------------------------
    def request_password_reset(self, email: str) -> Optional[tuple[User, str]]:
        """
        Issue a reset token when the email belongs to an account.

        Returns ``None`` for unknown emails. Callers must answer both cases the
        same way so the endpoint cannot be used to probe for accounts.
        """
        user = self._users.get_user_by_email(normalize_email(email))
        reset = issue_one_time_token(TokenPurpose.PASSWORD_RESET, self._clock(), self._reset_ttl)
        if not user:
            return None
        self._users.set_password_reset_token(user.id, reset.digest, reset.expires_at)
        return user, reset.token

    def reset_password(self, token: str, new_password: str) -> User:
        validate_password(new_password, field="new_password")
        if not token:
            raise OutOfBandTokenInvalidError("Invalid or expired reset token")
        password_hash = self._hasher.hash(new_password)
        user = self._users.consume_password_reset_token(digest_token(token), password_hash, self._clock())
        if not user:
            raise OutOfBandTokenInvalidError("Invalid or expired reset token")
        logger.info("Password reset completed for user %s", user.id)
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        if not current_password:
            raise ValidationError({"current_password": "Current password is required"})
        validate_password(new_password, field="new_password")
        user = self._require_user(user_id, include_password=True)
        if not user.password_hash or not self._hasher.verify(current_password, user.password_hash):
            raise CurrentPasswordIncorrectError()
        return self._users.update_user_password(user.id, self._hasher.hash(new_password))

    # Profile ---------------------------------------------------------------
    def get_profile(self, user_id: int) -> User:
        return self._require_user(user_id)

    def update_profile(self, user_id: int, **fields: object) -> User:
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError({name: "Field cannot be updated" for name in sorted(unknown)})
        self._require_user(user_id)
        changes = {key: value for key, value in fields.items() if value not in (None, "")}
        changes = validate_profile(changes, today=self._clock().date())
        return self._users.update_user(user_id, **changes)

    def _require_user(self, user_id: int, include_password: bool = False) -> User:
        user = self._users.get_user_by_id(user_id, include_password=include_password)
        if not user:
            raise UserNotFoundError()
        return user
