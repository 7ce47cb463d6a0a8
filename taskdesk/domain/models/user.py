"""User domain model for account authentication and management."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    MANAGER = "manager"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


@dataclass(slots=True)
class User:
    """
    User entity shared by self-registered and administrator-created accounts.

    Attributes:
        id: Unique identifier
        email: Lowercased email address (unique)
        role: Coarse authorization tag
        status: Only ``active`` accounts may authenticate
        is_email_verified: Whether the email address has been confirmed
        login_attempts: Consecutive failed logins since the last success
        lock_until: Lock expiry, only honoured while in the future
        last_login: Timestamp of the last successful login
        password_hash: bcrypt hash, populated only when explicitly requested
    """

    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    is_email_verified: bool = False
    avatar: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None
    login_attempts: int = 0
    lock_until: Optional[datetime] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    password_hash: Optional[str] = field(default=None, repr=False)

    @property
    def is_active(self) -> bool:
        return self.status is UserStatus.ACTIVE
