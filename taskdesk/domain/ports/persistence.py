from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from ..models import User, UserRole, UserStatus


class UserRepository(Protocol):
    """Persistence functions related to user accounts."""

    def get_user_by_email(self, email: str, *, include_password: bool = False) -> Optional[User]:
        ...

    def get_user_by_id(self, user_id: int, *, include_password: bool = False) -> Optional[User]:
        ...

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.ACTIVE,
        is_email_verified: bool = False,
        phone: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        hire_date: Optional[date] = None,
        verification_digest: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
    ) -> User:
        ...

    def update_user(self, user_id: int, **fields: Any) -> User:
        """Update profile, role or status columns. Credentials are not accepted here."""
        ...

    def update_user_password(self, user_id: int, password_hash: str) -> User:
        ...

    def update_login_state(
        self,
        user_id: int,
        login_attempts: int,
        lock_until: Optional[datetime],
    ) -> None:
        ...

    def record_successful_login(self, user_id: int, logged_in_at: datetime) -> User:
        ...

    def set_email_verification_token(self, user_id: int, digest: str, expires_at: datetime) -> None:
        ...

    def set_password_reset_token(self, user_id: int, digest: str, expires_at: datetime) -> None:
        ...

    def consume_email_verification_token(self, digest: str, now: datetime) -> Optional[User]:
        """Mark verified and clear the token in one step; ``None`` when nothing matched."""
        ...

    def consume_password_reset_token(
        self,
        digest: str,
        password_hash: str,
        now: datetime,
    ) -> Optional[User]:
        """Replace the hash and clear the token in one step; ``None`` when nothing matched."""
        ...

    def list_users(
        self,
        *,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        department: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        ...

    def search_users(
        self,
        term: str,
        *,
        limit: int,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        department: Optional[str] = None,
    ) -> List[User]:
        """Match ``term`` against names, email, department and position; ordered by name."""
        ...

    def bulk_update_users(
        self,
        user_ids: Sequence[int],
        *,
        exclude_role: Optional[UserRole] = None,
        **fields: Any,
    ) -> Tuple[int, int]:
        """Apply ``fields`` to every listed user. Returns ``(matched, modified)``."""
        ...

    def get_user_stats(self, registered_since: datetime) -> Dict[str, Any]:
        ...

    def delete_user(self, user_id: int) -> None:
        ...


class PersistenceGateway(UserRepository, Protocol):
    """Composite gateway combining every persistence concern used by the app."""

    def close(self) -> None:
        ...
