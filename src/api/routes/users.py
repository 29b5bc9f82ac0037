"""
User management API routes.

This module provides:
- GET /api/v1/users/me - Get current user profile with permissions
- PUT /api/v1/users/me - Update current user profile
- PUT /api/v1/users/me/password - Change current user password
- GET /api/v1/users - List users (manage_users, paginated)
- GET /api/v1/users/{user_id} - Get specific user (manage_users)
- PUT /api/v1/users/{user_id} - Change role, status or name of a user (manage_users)
- DELETE /api/v1/users/{user_id} - Delete a user (manage_users)
- GET /api/v1/users/{user_id}/permissions - Get user permissions (manage_permissions)
- PUT /api/v1/users/{user_id}/permissions - Update user permissions (manage_permissions)
"""

import logging

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import (
    ActiveUser,
    PermissionManager,
    UserManager,
    get_auth_service,
    get_permission_service,
    get_user_service,
)
from src.schemas.auth import SuccessMessageResponse
from src.schemas.common import PaginatedResponse, PaginationMeta, PaginationParams
from src.schemas.permission import PermissionSetResponse, PermissionUpdate
from src.schemas.user import (
    UserAdminUpdate,
    UserFilterParams,
    UserListItem,
    UserPasswordChange,
    UserProfileResponse,
    UserResponse,
    UserUpdate,
)
from src.services.audit_service import RequestContext
from src.services.auth_service import AuthService
from src.services.permission_service import PermissionService
from src.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/me",
    response_model=UserProfileResponse,
    summary="Get current user profile",
    description="Get the profile and permission flags of the currently authenticated user",
)
async def get_current_user_profile(
    current_user: ActiveUser,
    user_service: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    """
    Get current user's profile.

    Requires:
        - Valid access token
        - Verified, active account
    """
    user = await user_service.get_profile(current_user)
    return UserProfileResponse.model_validate(user)


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update current user profile",
    description="Update the name and surname of the currently authenticated user",
)
async def update_current_user_profile(
    request: Request,
    update_data: UserUpdate,
    current_user: ActiveUser,
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    Update current user's profile.

    Request body:
        - name: New given name (optional)
        - surname: New family name (optional)
    """
    user = await user_service.update_profile(
        current_user,
        name=update_data.name,
        surname=update_data.surname,
        context=RequestContext.from_request(request),
    )
    return UserResponse.model_validate(user)


@router.put(
    "/me/password",
    response_model=SuccessMessageResponse,
    summary="Change password",
    description="Change the password of the currently authenticated user",
)
async def change_password(
    request: Request,
    payload: UserPasswordChange,
    current_user: ActiveUser,
    auth_service: AuthService = Depends(get_auth_service),
) -> SuccessMessageResponse:
    """
    Change current user's password.

    Raises:
        - 400 Bad Request: If the new password is too weak
        - 401 Unauthorized: If the current password is incorrect
    """
    await auth_service.change_password(
        current_user,
        current_password=payload.current_password,
        new_password=payload.new_password,
        context=RequestContext.from_request(request),
    )
    return SuccessMessageResponse(message="Password changed successfully.")


# ============================================================================
# User Management Endpoints
# ============================================================================


@router.get(
    "",
    response_model=PaginatedResponse[UserListItem],
    summary="List users",
    description="List users with pagination and filtering (requires manage_users)",
)
async def list_users(
    current_user: UserManager,
    pagination: PaginationParams = Depends(),
    filters: UserFilterParams = Depends(),
    user_service: UserService = Depends(get_user_service),
) -> PaginatedResponse[UserListItem]:
    """
    List users with pagination and filtering.

    Query parameters:
        - page: Page number (default: 1)
        - page_size: Items per page (default: 20, max: 100)
        - search: Search in email, name or surname (optional)
        - account_status: Filter by account status (optional)

    Raises:
        - 403 Forbidden: If the caller lacks manage_users
    """
    result = await user_service.list_users(
        search=filters.search,
        status=filters.account_status,
        offset=pagination.offset,
        limit=pagination.page_size,
    )

    return PaginatedResponse(
        data=[UserListItem.model_validate(user) for user in result.items],
        meta=PaginationMeta.build(result.total, pagination),
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get specific user",
    description="Get a specific user's details (requires manage_users)",
)
async def get_user_by_id(
    user_id: int,
    current_user: UserManager,
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    Get specific user by ID.

    Raises:
        - 403 Forbidden: If the caller lacks manage_users
        - 404 Not Found: If user not found
    """
    user = await user_service.get_user(user_id)
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    description="Change the role, account status or name of a user (requires manage_users)",
)
async def update_user(
    request: Request,
    user_id: int,
    payload: UserAdminUpdate,
    current_user: UserManager,
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    Update another user's account.

    Setting account_status to active also clears the failed-login counter,
    which is how a suspended account is reinstated.

    Raises:
        - 403 Forbidden: If the caller lacks manage_users, changes their own
          role or status, or is not an admin and touches an admin account
        - 404 Not Found: If user not found
    """
    user = await user_service.update_user(
        user_id,
        payload.changes(),
        actor=current_user,
        context=RequestContext.from_request(request),
    )
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    response_model=SuccessMessageResponse,
    summary="Delete user",
    description="Permanently delete a user (requires manage_users)",
)
async def delete_user(
    request: Request,
    user_id: int,
    current_user: UserManager,
    user_service: UserService = Depends(get_user_service),
) -> SuccessMessageResponse:
    await user_service.delete_user(
        user_id,
        actor=current_user,
        context=RequestContext.from_request(request),
    )
    return SuccessMessageResponse(message="User deleted successfully.")


@router.get(
    "/{user_id}/permissions",
    response_model=PermissionSetResponse,
    summary="Get user permissions",
    description="Get a user's capability flags (requires manage_permissions)",
)
async def get_user_permissions(
    user_id: int,
    current_user: PermissionManager,
    permission_service: PermissionService = Depends(get_permission_service),
) -> PermissionSetResponse:
    """
    Get a user's capability flags.

    Raises:
        - 403 Forbidden: If the caller lacks manage_permissions
        - 404 Not Found: If user not found
    """
    permission = await permission_service.get_for_user(user_id)
    return PermissionSetResponse.model_validate(permission)


@router.put(
    "/{user_id}/permissions",
    response_model=PermissionSetResponse,
    summary="Update user permissions",
    description="Set or clear capability flags of a user (requires manage_permissions)",
)
async def update_user_permissions(
    request: Request,
    user_id: int,
    payload: PermissionUpdate,
    current_user: PermissionManager,
    permission_service: PermissionService = Depends(get_permission_service),
) -> PermissionSetResponse:
    """
    Update a user's capability flags.

    Omitted flags keep their stored value.

    Raises:
        - 403 Forbidden: If the caller lacks manage_permissions
        - 404 Not Found: If user not found
    """
    permission = await permission_service.update_permissions(
        user_id,
        payload.changes(),
        actor=current_user,
        context=RequestContext.from_request(request),
    )
    return PermissionSetResponse.model_validate(permission)
