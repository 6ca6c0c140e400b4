# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

Exports:
    AuthMiddleware: JWT authentication middleware.
    CurrentUser: Claims of the authenticated user.
"""

from amistapp.api.middleware.auth import AuthMiddleware, AuthState, CurrentUser

__all__ = [
    "AuthMiddleware",
    "AuthState",
    "CurrentUser",
]
