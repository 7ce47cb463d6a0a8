"""API router for administrator management of user accounts."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ....application.services.user_admin_service import UserAdminService
from ....core.dependencies import get_user_admin_service
from ....domain.models import User, UserRole, UserStatus
from ..dependencies import require_admin, require_admin_or_manager
from ..schemas.user_schemas import (
    ApiResponse,
    BulkUpdateData,
    BulkUpdateRequest,
    CreateUserRequest,
    MessageResponse,
    PaginationResponse,
    UpdateUserRequest,
    UpdateUserRoleRequest,
    UpdateUserStatusRequest,
    UserData,
    UserListData,
    UserResponse,
    UserSearchData,
    UserStatsResponse,
)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=ApiResponse[UserListData])
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="Matches first name, last name or email"),
    role: Optional[UserRole] = Query(None),
    status_filter: Optional[UserStatus] = Query(None, alias="status"),
    department: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[UserListData]:
    result = admin_service.list_users(
        page=page,
        limit=limit,
        search=search,
        role=role,
        status=status_filter,
        department=department,
    )
    pagination = result.pagination
    return ApiResponse[UserListData](
        data=UserListData(
            users=[UserResponse.from_user(user) for user in result.users],
            pagination=PaginationResponse(
                page=pagination.page,
                limit=pagination.limit,
                total=pagination.total,
                total_pages=pagination.total_pages,
                has_next=pagination.has_next,
                has_prev=pagination.has_prev,
            ),
        )
    )


@router.get("/stats", response_model=ApiResponse[UserStatsResponse])
def get_user_stats(
    _: User = Depends(require_admin_or_manager),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[UserStatsResponse]:
    return ApiResponse[UserStatsResponse](data=UserStatsResponse(**admin_service.get_stats()))


@router.get("/search", response_model=ApiResponse[UserSearchData])
def search_users(
    q: Optional[str] = Query(None, description="Matches name, email, department or position"),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[UserRole] = Query(None),
    status_filter: Optional[UserStatus] = Query(None, alias="status"),
    department: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[UserSearchData]:
    users = admin_service.search_users(
        q, limit=limit, role=role, status=status_filter, department=department
    )
    return ApiResponse[UserSearchData](
        data=UserSearchData(users=[UserResponse.from_user(user) for user in users])
    )


@router.patch("/bulk-update", response_model=ApiResponse[BulkUpdateData])
def bulk_update_users(
    payload: BulkUpdateRequest,
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[BulkUpdateData]:
    result = admin_service.bulk_update(
        payload.user_ids, payload.updates.model_dump(exclude_none=True)
    )
    return ApiResponse[BulkUpdateData](
        message=f"Updated {result.modified_count} users successfully",
        data=BulkUpdateData(
            modified_count=result.modified_count,
            matched_count=result.matched_count,
        ),
    )


@router.get("/{user_id}", response_model=ApiResponse[UserData])
def get_user(
    user_id: int,
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[UserData]:
    user = admin_service.get_user(user_id)
    return ApiResponse[UserData](data=UserData(user=UserResponse.from_user(user)))


@router.post("", response_model=ApiResponse[UserData], status_code=status.HTTP_201_CREATED)
def create_user(
    payload: CreateUserRequest,
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[UserData]:
    user = admin_service.create_user(**payload.model_dump())
    return ApiResponse[UserData](
        message="User created successfully",
        data=UserData(user=UserResponse.from_user(user)),
    )


@router.put("/{user_id}", response_model=ApiResponse[UserData])
def update_user(
    user_id: int,
    payload: UpdateUserRequest,
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[UserData]:
    user = admin_service.update_user(user_id, **payload.model_dump(exclude_unset=True))
    return ApiResponse[UserData](
        message="User updated successfully",
        data=UserData(user=UserResponse.from_user(user)),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> MessageResponse:
    admin_service.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")


@router.patch("/{user_id}/status", response_model=ApiResponse[UserData])
def update_user_status(
    user_id: int,
    payload: UpdateUserStatusRequest,
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[UserData]:
    user = admin_service.update_status(user_id, payload.status)
    return ApiResponse[UserData](
        message="User status updated successfully",
        data=UserData(user=UserResponse.from_user(user)),
    )


@router.patch("/{user_id}/role", response_model=ApiResponse[UserData])
def update_user_role(
    user_id: int,
    payload: UpdateUserRoleRequest,
    _: User = Depends(require_admin),
    admin_service: UserAdminService = Depends(get_user_admin_service),
) -> ApiResponse[UserData]:
    user = admin_service.update_role(user_id, payload.role)
    return ApiResponse[UserData](
        message="User role updated successfully",
        data=UserData(user=UserResponse.from_user(user)),
    )
