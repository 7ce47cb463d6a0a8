"""Domain models for the TaskDesk application."""

from .user import User, UserRole, UserStatus

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
]
