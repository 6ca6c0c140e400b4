# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints:
- Application settings, credential store and JWT manager (from app.state)
- Service instances
- Authentication and role gates

Example:
    @router.get("/admin/users/{user_id}")
    async def get_user(
        user_id: int,
        current_user: CurrentUser = Depends(require_admin),
        auth_service: AuthService = Depends(get_auth_service),
    ):
        ...
"""

import logging

from fastapi import Depends, HTTPException, Request, status

from amistapp.api.middleware.auth import AuthState, CurrentUser, get_auth_state, get_current_user
from amistapp.core.config import Settings
from amistapp.domains.auth.jwt import JWTManager
from amistapp.domains.auth.models import UserRole
from amistapp.domains.auth.password import PasswordHasher
from amistapp.domains.auth.service import AuthService
from amistapp.infrastructure.database.connection import CredentialStore

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_store(request: Request) -> CredentialStore:
    """Get the credential store opened at startup.

    Raises:
        HTTPException: If the store is not initialized.
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    return store


def get_jwt_manager(request: Request) -> JWTManager:
    """Get JWT manager instance.

    Returns:
        JWTManager.
    """
    return request.app.state.jwt_manager


def get_password_hasher(settings: Settings = Depends(get_app_settings)) -> PasswordHasher:
    """Get password hasher instance.

    Returns:
        PasswordHasher using the configured work factor.
    """
    return PasswordHasher(rounds=settings.hashing.bcrypt_rounds)


def get_auth_service(
    store: CredentialStore = Depends(get_store),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
) -> AuthService:
    """Get AuthService instance."""
    return AuthService(store, jwt_manager, password_hasher)


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: 401 if no token was presented, 403 if the token is
            malformed, expired or forged.
    """
    state = get_auth_state(request)
    user = get_current_user(request)

    if state == AuthState.INVALID:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )
    if state != AuthState.AUTHENTICATED or user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


class RequireRole:
    """Dependency for requiring specific roles.

    Runs ``require_auth`` first, so unauthenticated requests still get
    401/403 before the role is looked at.

    Example:
        @router.get("/reports")
        async def reports(
            user: CurrentUser = Depends(RequireRole(UserRole.TEACHER, UserRole.ADMIN)),
        ):
            ...
    """

    def __init__(self, *roles: UserRole | str) -> None:
        """Initialize role requirement.

        Args:
            roles: Allowed roles (any of these).
        """
        self.roles = tuple(UserRole(role) for role in roles)

    def __call__(self, request: Request) -> CurrentUser:
        """Check roles and return user.

        Raises:
            HTTPException: 403 if the user's role is not allowed.
        """
        user = require_auth(request)
        if not user.has_any_role(*self.roles):
            logger.info("Role gate refused user %s with role %s", user.id, user.role.value)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user


def require_roles(*roles: UserRole | str) -> RequireRole:
    """Build a role gate dependency for the given roles."""
    return RequireRole(*roles)


require_admin = RequireRole(UserRole.ADMIN)
