"""Login-attempt lockout rules.

The account is either open or locked until a timestamp. A lock whose
timestamp has passed counts as open and is reset by the next attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import NamedTuple, Optional

from .models import User

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_LOCK_DURATION = timedelta(hours=2)


class LoginState(NamedTuple):
    login_attempts: int
    lock_until: Optional[datetime]


def is_locked(user: User, now: datetime) -> bool:
    return user.lock_until is not None and user.lock_until > now


def lock_expired(user: User, now: datetime) -> bool:
    return user.lock_until is not None and user.lock_until <= now


@dataclass(frozen=True, slots=True)
class LockoutPolicy:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    lock_duration: timedelta = DEFAULT_LOCK_DURATION

    def after_failure(self, user: User, now: datetime) -> LoginState:
        """State to persist after a wrong password for ``user``."""
        previous, lock_until = user.login_attempts, user.lock_until
        if lock_expired(user, now):
            # the attempt that found the stale lock is the first of a new run
            previous, lock_until = 0, None
        attempts = previous + 1
        if attempts >= self.max_attempts and not (lock_until and lock_until > now):
            return LoginState(attempts, now + self.lock_duration)
        return LoginState(attempts, lock_until)

    @staticmethod
    def after_success() -> LoginState:
        return LoginState(0, None)
