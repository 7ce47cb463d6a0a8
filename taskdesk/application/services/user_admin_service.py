from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ...core.clock import Clock, utc_now
from ...domain.errors import (
    EmailAlreadyRegisteredError,
    OperationNotAllowedError,
    UserNotFoundError,
    ValidationError,
)
from ...domain.models import User, UserRole, UserStatus
from ...domain.ports.persistence import UserRepository
from ...domain.validation import normalize_email, validate_password, validate_profile
from .password_hasher import PasswordHasher

logger = logging.getLogger(__name__)

ADMIN_EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "role",
    "status",
    "phone",
    "department",
    "position",
    "date_of_birth",
    "hire_date",
)
# Bulk updates never touch credentials or login identity.
BULK_STRIPPED_FIELDS = ("password", "email")
BULK_EDITABLE_FIELDS = tuple(name for name in ADMIN_EDITABLE_FIELDS if name not in BULK_STRIPPED_FIELDS)
RECENT_REGISTRATION_WINDOW = timedelta(days=30)
MAX_PAGE_SIZE = 100
DEFAULT_SEARCH_LIMIT = 20


@dataclass(slots=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


@dataclass(slots=True)
class UserPage:
    users: List[User]
    pagination: Pagination


@dataclass(slots=True)
class BulkUpdateResult:
    matched_count: int
    modified_count: int


class UserAdminService:
    """Administrator operations on user accounts."""

    def __init__(self, users: UserRepository, hasher: PasswordHasher, clock: Clock = utc_now) -> None:
        self._users = users
        self._hasher = hasher
        self._clock = clock

    def ensure_default_admin(
        self,
        email: Optional[str],
        password: Optional[str],
        first_name: str = "Admin",
        last_name: str = "User",
    ) -> Optional[User]:
        if not email or not password:
            return None
        existing = self._users.get_user_by_email(normalize_email(email))
        if existing:
            return existing
        logger.info("Creating default administrator account for %s", email)
        return self.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=UserRole.ADMIN,
            department="Administration",
            position="System Administrator",
        )

    def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        department: Optional[str] = None,
    ) -> UserPage:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        users, total = self._users.list_users(
            offset=(page - 1) * limit,
            limit=limit,
            search=search or None,
            role=role,
            status=status,
            department=department or None,
        )
        total_pages = math.ceil(total / limit)
        return UserPage(
            users=users,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )

    def get_user(self, user_id: int) -> User:
        user = self._users.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    def create_user(
        self,
        *,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.ACTIVE,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        hire_date: Optional[date] = None,
    ) -> User:
        """Create an account on behalf of an administrator. Such accounts start verified."""
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
                "hire_date": hire_date,
            },
            today=self._clock().date(),
        )
        if self._users.get_user_by_email(email_clean):
            raise EmailAlreadyRegisteredError()
        user = self._users.create_user(
            email=email_clean,
            password_hash=self._hasher.hash(password),
            role=role,
            status=status,
            is_email_verified=True,
            **profile,
        )
        logger.info("Administrator created user %s with role %s", user.id, user.role.value)
        return user

    def update_user(self, user_id: int, **fields: Any) -> User:
        unknown = set(fields) - set(ADMIN_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({name: "Field cannot be updated" for name in sorted(unknown)})
        user = self.get_user(user_id)
        changes: Dict[str, Any] = {key: value for key, value in fields.items() if value not in (None, "")}

        email = changes.pop("email", None)
        if email is not None:
            email_clean = normalize_email(email)
            if email_clean != user.email:
                if self._users.get_user_by_email(email_clean):
                    raise EmailAlreadyRegisteredError()
                changes["email"] = email_clean

        profile_keys = [key for key in changes if key not in ("email", "role", "status")]
        profile = validate_profile({key: changes[key] for key in profile_keys}, today=self._clock().date())
        changes.update(profile)
        return self._users.update_user(user_id, **changes)

    def delete_user(self, user_id: int) -> None:
        user = self.get_user(user_id)
        if user.role is UserRole.ADMIN:
            raise OperationNotAllowedError("Cannot delete admin users")
        self._users.delete_user(user_id)
        logger.info("Deleted user %s", user_id)

    def update_status(self, user_id: int, status: UserStatus) -> User:
        user = self.get_user(user_id)
        if user.role is UserRole.ADMIN:
            raise OperationNotAllowedError("Cannot change status of admin users")
        updated = self._users.update_user(user_id, status=UserStatus(status))
        logger.info("User %s status changed from %s to %s", user_id, user.status.value, updated.status.value)
        return updated

    def update_role(self, user_id: int, role: UserRole) -> User:
        user = self.get_user(user_id)
        if user.role is UserRole.ADMIN:
            raise OperationNotAllowedError("Cannot change role of admin users")
        updated = self._users.update_user(user_id, role=UserRole(role))
        logger.info("User %s role changed from %s to %s", user_id, user.role.value, updated.role.value)
        return updated

    def search_users(
        self,
        query: Optional[str],
        limit: int = DEFAULT_SEARCH_LIMIT,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        department: Optional[str] = None,
    ) -> List[User]:
        term = (query or "").strip()
        if not term:
            raise ValidationError({"q": "Search query is required"}, message="Search query is required")
        return self._users.search_users(
            term,
            limit=min(max(limit, 1), MAX_PAGE_SIZE),
            role=role,
            status=status,
            department=department or None,
        )

    def bulk_update(self, user_ids: Iterable[int], updates: Mapping[str, Any]) -> BulkUpdateResult:
        """
        Apply the same changes to several accounts.

        ``password`` and ``email`` are dropped from ``updates``. When the change
        touches role or status, administrator accounts are left out and do not
        count as matched.

        Raises:
            ValidationError: No ids, nothing left to update, or a field outside the bulk scope
        """
        ids = sorted({int(user_id) for user_id in user_ids})
        if not ids:
            raise ValidationError({"user_ids": "User IDs array is required"}, message="User IDs array is required")

        changes = {
            key: value
            for key, value in updates.items()
            if key not in BULK_STRIPPED_FIELDS and value not in (None, "")
        }
        unknown = set(changes) - set(BULK_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({name: "Field cannot be updated" for name in sorted(unknown)})
        if not changes:
            raise ValidationError({"updates": "Updates object is required"}, message="Updates object is required")

        profile_keys = [key for key in changes if key not in ("role", "status")]
        changes.update(
            validate_profile({key: changes[key] for key in profile_keys}, today=self._clock().date())
        )
        exclude_role = UserRole.ADMIN if {"role", "status"} & set(changes) else None
        matched, modified = self._users.bulk_update_users(ids, exclude_role=exclude_role, **changes)
        logger.info(
            "Bulk update of %s on %s requested users: %s matched, %s modified",
            ", ".join(sorted(changes)),
            len(ids),
            matched,
            modified,
        )
        return BulkUpdateResult(matched_count=matched, modified_count=modified)

    def get_stats(self) -> Dict[str, Any]:
        return self._users.get_user_stats(self._clock() - RECENT_REGISTRATION_WINDOW)
