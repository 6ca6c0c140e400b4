# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication endpoints.

This module provides endpoints for platform users:
- POST /register - Create an account and get a session token
- POST /login - Authenticate and get a session token
- GET /profile - Get the composed profile of the current user
- PUT /profile - Update name and avatar
- POST /change-password - Replace the current password
- POST /logout - Acknowledge logout (tokens are stateless)
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import AfterValidator, BaseModel, Field, field_validator

from amistapp.api.dependencies import get_auth_service, require_auth
from amistapp.api.errors import ApiError
from amistapp.api.middleware.auth import CurrentUser
from amistapp.domains.auth.models import UserRole
from amistapp.domains.auth.service import (
    AccountSuspendedError,
    AuthService,
    EmailAlreadyRegisteredError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    RegistrationData,
    UserNotFoundError,
)
from amistapp.domains.auth.validation import (
    validate_email,
    validate_name,
    validate_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS = "invalid credentials"

Email = Annotated[str, AfterValidator(validate_email)]
Password = Annotated[str, AfterValidator(validate_password)]
DisplayName = Annotated[str, AfterValidator(validate_name)]


class RegisterRequest(BaseModel):
    """Account registration request."""

    email: Email = Field(..., description="Email address")
    password: Password = Field(..., description="Password (6-128 characters)")
    name: DisplayName = Field(..., description="Display name")
    role: UserRole = Field(default=UserRole.STUDENT, description="teacher, tutor or student")
    school: str | None = Field(None, max_length=200, description="School (teacher, student)")
    subjects: str | None = Field(None, max_length=500, description="Subjects taught (teacher)")
    relationship: str | None = Field(None, max_length=50, description="Relationship to student (tutor)")
    phone: str | None = Field(None, max_length=30, description="Contact phone (tutor)")
    grade: str | None = Field(None, max_length=20, description="Grade (student)")

    @field_validator("role")
    @classmethod
    def reject_admin(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("administrator accounts cannot be registered")
        return value

    @field_validator("grade", mode="before")
    @classmethod
    def grade_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class LoginRequest(BaseModel):
    """Login request."""

    email: str = Field(..., min_length=1, description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class UpdateProfileRequest(BaseModel):
    """Profile update request."""

    name: DisplayName = Field(..., description="Display name")
    avatar_url: str | None = Field(None, max_length=500, description="Avatar image URL")


class ChangePasswordRequest(BaseModel):
    """Password change request."""

    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: Password = Field(..., description="New password (6-128 characters)")


class AuthResponse(BaseModel):
    """Response carrying a session token."""

    message: str
    token: str
    user: dict[str, Any]


class ProfileResponse(BaseModel):
    """Response carrying a composed profile."""

    user: dict[str, Any]


class MessageResponse(BaseModel):
    """Plain acknowledgment."""

    message: str


class ProfileUpdateResponse(BaseModel):
    """Response to a profile update."""

    message: str
    user: dict[str, Any]


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account with its role-specific data and get a session token.",
)
async def register(
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new account.

    Raises:
        ApiError: 400 if the email is already registered.
    """
    registration = RegistrationData.build(
        email=data.email,
        password=data.password,
        name=data.name,
        role=data.role,
        school=data.school,
        subjects=data.subjects,
        relationship=data.relationship,
        phone=data.phone,
        grade=data.grade,
    )

    try:
        result = await auth_service.register(registration)
    except EmailAlreadyRegisteredError:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "email already registered",
            details=f"An account with email {registration.email} already exists",
        )

    return AuthResponse(
        message="User registered successfully",
        token=result.token,
        user=result.profile.to_dict(),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Authenticate with email and password and get a session token.",
)
async def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Authenticate a user.

    Raises:
        HTTPException: 401 on unknown email or wrong password, 403 if the
            account is suspended.
    """
    try:
        result = await auth_service.login(email=data.email, password=data.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )
    except AccountSuspendedError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is suspended",
        )

    return AuthResponse(
        message="Login successful",
        token=result.token,
        user=result.profile.to_dict(),
    )


@router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="Get profile",
    description="Get the current user's profile including role-specific data.",
)
async def get_profile(
    current_user: CurrentUser = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    """Get the current user's composed profile."""
    try:
        profile = await auth_service.get_profile(current_user.id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return ProfileResponse(user=profile.to_dict())


@router.put(
    "/profile",
    response_model=ProfileUpdateResponse,
    summary="Update profile",
)
async def update_profile(
    data: UpdateProfileRequest,
    current_user: CurrentUser = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> ProfileUpdateResponse:
    """Update the current user's name and avatar."""
    try:
        profile = await auth_service.update_profile(
            current_user.id,
            name=data.name,
            avatar_url=data.avatar_url,
        )
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return ProfileUpdateResponse(message="Profile updated successfully", user=profile.to_dict())


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Change password",
)
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Replace the current user's password.

    Raises:
        ApiError: 400 if the current password is wrong.
    """
    try:
        await auth_service.change_password(
            current_user.id,
            data.current_password,
            data.new_password,
        )
    except IncorrectPasswordError:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "current password is incorrect")
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return MessageResponse(message="Password changed successfully")


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Tokens are stateless; the client discards its token.",
)
async def logout(current_user: CurrentUser = Depends(require_auth)) -> MessageResponse:
    """Acknowledge logout."""
    logger.info("User logged out: %s", current_user.id)
    return MessageResponse(message="Logout successful")
