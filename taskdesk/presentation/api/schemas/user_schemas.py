"""Pydantic schemas for user payloads shared by the auth and user routers."""

from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel

from ....domain.models import User, UserRole, UserStatus

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[DataT]):
    """Envelope returned by every endpoint."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class UserResponse(CamelModel):
    """Public view of an account. Credentials and token state never appear here."""

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    role: UserRole
    status: UserStatus
    is_email_verified: bool
    avatar: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            role=user.role,
            status=user.status,
            is_email_verified=user.is_email_verified,
            avatar=user.avatar,
            phone=user.phone,
            department=user.department,
            position=user.position,
            date_of_birth=user.date_of_birth,
            hire_date=user.hire_date,
            last_login=user.last_login,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserData(CamelModel):
    user: UserResponse


class PaginationResponse(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class UserListData(CamelModel):
    users: List[UserResponse]
    pagination: PaginationResponse


class CreateUserRequest(CamelModel):
    """Request schema for administrator-created accounts."""

    email: EmailStr
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None


class UpdateUserRequest(CamelModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None


class UpdateUserStatusRequest(CamelModel):
    status: UserStatus


class UpdateUserRoleRequest(CamelModel):
    role: UserRole


class StatusBreakdown(CamelModel):
    active: int
    inactive: int
    suspended: int


class RoleBreakdown(CamelModel):
    admin: int
    manager: int
    user: int


class VerificationBreakdown(CamelModel):
    verified: int
    unverified: int


class DepartmentCount(CamelModel):
    department: Optional[str] = None
    count: int


class UserStatsResponse(CamelModel):
    total_users: int
    status_breakdown: StatusBreakdown
    role_breakdown: RoleBreakdown
    verification_breakdown: VerificationBreakdown
    department_stats: List[DepartmentCount]
    recent_registrations: int


class UserSearchData(CamelModel):
    users: List[UserResponse]


class BulkUserUpdates(CamelModel):
    """Fields a bulk update may set. Anything else, credentials included, is ignored."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None


class BulkUpdateRequest(CamelModel):
    user_ids: List[int]
    updates: BulkUserUpdates


class BulkUpdateData(CamelModel):
    modified_count: int
    matched_count: int
