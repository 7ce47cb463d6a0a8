from __future__ import annotations

import bcrypt

from ...domain.validation import PASSWORD_MAX_BYTES

DEFAULT_ROUNDS = 12


class PasswordHasher:
    """bcrypt wrapper with a configurable work factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise RuntimeError("BCRYPT_ROUNDS must be between 4 and 31.")
        self._rounds = rounds
        self._dummy_hash: bytes | None = None

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, plaintext: str) -> str:
        encoded = plaintext.encode("utf-8")
        if len(encoded) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password cannot exceed {PASSWORD_MAX_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        encoded = plaintext.encode("utf-8")
        if len(encoded) > PASSWORD_MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
        except ValueError as exc:
            raise RuntimeError("Password comparison failed") from exc

    def dummy_verify(self, plaintext: str) -> None:
        """Spend one verification's worth of time when there is no stored hash to check."""
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(b"taskdesk-dummy-password", bcrypt.gensalt(rounds=self._rounds))
        encoded = plaintext.encode("utf-8")[:PASSWORD_MAX_BYTES]
        bcrypt.checkpw(encoded, self._dummy_hash)
