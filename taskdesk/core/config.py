import os
import re
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_MINUTES = {"s": 1 / 60, "m": 1, "h": 60, "d": 60 * 24, "": 1}


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/taskdesk.db")).resolve()
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        self.jwt_secret = os.getenv("JWT_SECRET", "change-me")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.jwt_expires_minutes = self._get_duration_minutes("JWT_EXPIRES_IN", default="7d")

        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=12)
        self.max_login_attempts = self._get_int("MAX_LOGIN_ATTEMPTS", default=5)
        self.lockout_minutes = self._get_int("LOCKOUT_MINUTES", default=120)
        self.email_verification_hours = self._get_int("EMAIL_VERIFICATION_HOURS", default=24)
        self.password_reset_minutes = self._get_int("PASSWORD_RESET_MINUTES", default=60)

        self.admin_default_email = os.getenv("ADMIN_EMAIL")
        self.admin_default_password = os.getenv("ADMIN_PASSWORD")

        self.frontend_base_url = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = [self.frontend_base_url]

        self.smtp_host = os.getenv("SMTP_HOST")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME")
        self.smtp_password = os.getenv("SMTP_PASSWORD")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL")

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_duration_minutes(key: str, default: str) -> int:
        """Parse durations such as ``7d``, ``12h``, ``30m`` or ``90`` (minutes)."""
        value = os.getenv(key, default)
        match = _DURATION_RE.match(value)
        if not match:
            raise RuntimeError(f"Environment variable {key} must be a duration like 7d, 12h or 30m")
        amount, unit = match.groups()
        minutes = int(amount) * _DURATION_MINUTES[unit.lower()]
        if minutes <= 0:
            raise RuntimeError(f"Environment variable {key} must be positive")
        return max(1, round(minutes))
