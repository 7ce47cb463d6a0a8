"""Single-use tokens delivered out of band (email verification, password reset)."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class TokenPurpose(str, Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


DEFAULT_TTL = {
    TokenPurpose.EMAIL_VERIFICATION: timedelta(hours=24),
    TokenPurpose.PASSWORD_RESET: timedelta(hours=1),
}

TOKEN_BYTES = 32


@dataclass(frozen=True, slots=True)
class OneTimeToken:
    purpose: TokenPurpose
    token: str
    digest: str
    expires_at: datetime

    def __repr__(self) -> str:
        return f"<OneTimeToken purpose={self.purpose.value} expires_at={self.expires_at.isoformat()}>"


def digest_token(token: str) -> str:
    """SHA-256 of the token; the store only ever sees this value."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_one_time_token(
    purpose: TokenPurpose,
    now: datetime,
    ttl: timedelta | None = None,
) -> OneTimeToken:
    token = secrets.token_hex(TOKEN_BYTES)
    return OneTimeToken(
        purpose=purpose,
        token=token,
        digest=digest_token(token),
        expires_at=now + (ttl or DEFAULT_TTL[purpose]),
    )
