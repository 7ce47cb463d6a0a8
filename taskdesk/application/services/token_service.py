from __future__ import annotations

import logging
from datetime import timedelta

import jwt

from ...core.clock import Clock, utc_now
from ...domain.errors import AccountNotActiveError, TokenInvalidError
from ...domain.models import User
from ...domain.ports.persistence import UserRepository

logger = logging.getLogger(__name__)

INSECURE_DEFAULT_SECRET = "change-me"


class TokenService:
    """Issues session tokens and resolves them back to live, active accounts."""

    def __init__(
        self,
        users: UserRepository,
        secret_key: str,
        token_exp_minutes: int = 7 * 24 * 60,
        algorithm: str = "HS256",
        clock: Clock = utc_now,
    ) -> None:
        if not secret_key:
            raise RuntimeError("JWT_SECRET is not configured.")
        if secret_key == INSECURE_DEFAULT_SECRET:
            logger.warning("JWT_SECRET is using the default value. Configure a strong secret in production.")
        self._users = users
        self._secret_key = secret_key
        self._token_exp_minutes = token_exp_minutes
        self._algorithm = algorithm
        self._clock = clock

    def issue_token(self, user: User) -> str:
        now = self._clock()
        payload = {
            "sub": str(user.id),
            "role": user.role.value,
            "iat": now,
            "exp": now + timedelta(minutes=self._token_exp_minutes),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> int:
        """
        Check signature and expiry and return the subject's user id.

        Expiry is judged against the service clock rather than the wall clock,
        so ``iat`` is not checked. Every failure reads as the same error.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp", "sub"]},
            )
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError() from exc
        try:
            expires_at = float(payload["exp"])
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise TokenInvalidError() from exc
        if expires_at <= self._clock().timestamp():
            raise TokenInvalidError()
        return user_id

    def verify_token(self, token: str) -> User:
        """
        Resolve a bearer token to the account it was issued for.

        The account's current status wins over the token: a suspended or
        deactivated account is rejected even while its tokens are unexpired.

        Raises:
            TokenInvalidError: Bad signature, malformed payload, expired, or unknown subject
            AccountNotActiveError: The subject exists but is not active
        """
        user = self._users.get_user_by_id(self.decode_token(token))
        if not user:
            raise TokenInvalidError("Token is valid but user no longer exists.")
        if not user.is_active:
            raise AccountNotActiveError("User account is not active.")
        return user
