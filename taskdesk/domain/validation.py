"""Explicit validation of account input, raising ``ValidationError`` per field."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from .errors import ValidationError

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72  # bcrypt ignores (or rejects) anything beyond this
NAME_MAX_LENGTH = 50
ORG_FIELD_MAX_LENGTH = 100

_PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def password_problem(password: Optional[str]) -> Optional[str]:
    if not password:
        return "Password is required"
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return f"Password cannot exceed {PASSWORD_MAX_BYTES} bytes"
    return None


def validate_password(password: Optional[str], field: str = "password") -> str:
    problem = password_problem(password)
    if problem:
        raise ValidationError({field: problem})
    return password  # type: ignore[return-value]


def validate_profile(fields: Mapping[str, Any], today: date) -> Dict[str, Any]:
    """
    Check and trim profile fields.

    Args:
        fields: Profile values keyed by attribute name; ``None`` values are left alone
        today: Reference date for the date-of-birth and hire-date checks

    Returns:
        A new dict with string values trimmed

    Raises:
        ValidationError: With one message per offending field
    """
    cleaned: Dict[str, Any] = {}
    errors: Dict[str, str] = {}

    for key, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
        cleaned[key] = value
        if value is None:
            continue

        if key in ("first_name", "last_name"):
            if len(value) > NAME_MAX_LENGTH:
                label = "First name" if key == "first_name" else "Last name"
                errors[key] = f"{label} cannot exceed {NAME_MAX_LENGTH} characters"
        elif key in ("department", "position"):
            if len(value) > ORG_FIELD_MAX_LENGTH:
                errors[key] = f"{key.capitalize()} cannot exceed {ORG_FIELD_MAX_LENGTH} characters"
        elif key == "phone":
            if value and not _PHONE_RE.match(value):
                errors[key] = "Please enter a valid phone number"
        elif key == "date_of_birth":
            if _as_date(value) >= today:
                errors[key] = "Date of birth cannot be in the future"
        elif key == "hire_date":
            if _as_date(value) > today:
                errors[key] = "Hire date cannot be in the future"

    if errors:
        raise ValidationError(errors)
    return cleaned


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
