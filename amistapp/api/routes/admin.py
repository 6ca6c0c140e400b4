# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Administrator account endpoints.

- GET /users/{user_id} - Get any user's composed profile
- PATCH /users/{user_id}/status - Activate or suspend an account
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from amistapp.api.dependencies import get_auth_service, require_admin
from amistapp.api.middleware.auth import CurrentUser
from amistapp.domains.auth.models import UserStatus
from amistapp.domains.auth.service import AuthService, UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


class UpdateStatusRequest(BaseModel):
    """Account status change."""

    status: UserStatus = Field(..., description="active or suspended")


class AdminUserResponse(BaseModel):
    """A user's composed profile."""

    user: dict[str, Any]


@router.get(
    "/users/{user_id}",
    response_model=AdminUserResponse,
    summary="Get user",
)
async def get_user(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> AdminUserResponse:
    """Get a user's profile including role-specific data."""
    try:
        profile = await auth_service.get_profile(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return AdminUserResponse(user=profile.to_dict())


@router.patch(
    "/users/{user_id}/status",
    response_model=AdminUserResponse,
    summary="Set account status",
)
async def set_user_status(
    user_id: int,
    data: UpdateStatusRequest,
    current_user: CurrentUser = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> AdminUserResponse:
    """Activate or suspend an account.

    Administrators cannot suspend themselves.
    """
    if user_id == current_user.id and data.status == UserStatus.SUSPENDED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Administrators cannot suspend their own account",
        )

    try:
        profile = await auth_service.set_status(user_id, data.status)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info("Admin %s set user %s to %s", current_user.id, user_id, data.status.value)
    return AdminUserResponse(user=profile.to_dict())
