"""Exceptions raised by the account services.

Each class carries a client-safe default message. The HTTP layer decides the
status code; nothing here knows about transport.
"""

from __future__ import annotations

from typing import Dict, Optional


class DomainError(Exception):
    """Base class for expected, client-facing failures."""

    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentialsError(DomainError):
    default_message = "Invalid credentials"


class AccountLockedError(DomainError):
    default_message = "Account is locked due to too many failed login attempts"


class AccountNotActiveError(DomainError):
    default_message = "Account is not active"


class TokenInvalidError(DomainError):
    default_message = "Invalid token."


class InsufficientPermissionsError(DomainError):
    default_message = "Access denied. Insufficient permissions."


class OutOfBandTokenInvalidError(DomainError):
    default_message = "Invalid or expired token"


class EmailAlreadyRegisteredError(DomainError):
    default_message = "User with this email already exists"


class UserNotFoundError(DomainError):
    default_message = "User not found"


class OperationNotAllowedError(DomainError):
    default_message = "Operation not allowed"


class CurrentPasswordIncorrectError(DomainError):
    default_message = "Current password is incorrect"


class ValidationError(DomainError):
    """Malformed input, reported per field."""

    default_message = "Validation failed"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None) -> None:
        self.errors = dict(errors)
        super().__init__(message)
