"""Role-gated endpoints for the authenticated user."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from authapi.api.auth import get_auth_service, require_roles
from authapi.models import Role
from authapi.schemas.auth import ChangePasswordRequest, CurrentUser, UserProfile, UserStats
from authapi.schemas.common import ApiResponse
from authapi.services.auth import AuthService

router = APIRouter()

require_user = require_roles(Role.USER, Role.ADMIN)
require_admin = require_roles(Role.ADMIN)


def _account_age_days(created_at: datetime) -> int:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return max((datetime.now(UTC) - created_at).days, 0)


@router.get("/profile", response_model=ApiResponse[UserProfile])
def get_profile(
    current_user: Annotated[CurrentUser, Depends(require_user)],
) -> ApiResponse[UserProfile]:
    """Profile of the authenticated user (no password hash)."""
    profile = UserProfile.model_validate(current_user.model_dump())
    return ApiResponse.ok("Profile retrieved successfully", profile)


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(require_user)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[None]:
    """Replace the password after verifying the current one. 401 if it does not match."""
    service.change_password(current_user.username, body.old_password, body.new_password)
    return ApiResponse.ok("Password changed successfully")


@router.get("/stats", response_model=ApiResponse[UserStats])
def get_stats(
    current_user: Annotated[CurrentUser, Depends(require_user)],
) -> ApiResponse[UserStats]:
    stats = UserStats(
        user_id=current_user.id,
        username=current_user.username,
        role=current_user.role,
        account_age=_account_age_days(current_user.created_at),
        is_enabled=current_user.enabled,
    )
    return ApiResponse.ok("User statistics retrieved successfully", stats)


@router.get("/admin/info", response_model=ApiResponse[str])
def get_admin_info(
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[str]:
    """Admin only. Demonstrates RBAC."""
    message = (
        f"Welcome Admin {current_user.username}! "
        "You have access to administrative functions."
    )
    return ApiResponse.ok(message, "ADMIN_ACCESS_GRANTED")
