# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

This module provides:
- Password hashing with bcrypt
- Session token creation and validation
- Role profile composition
- Registration, login and account management

Exports:
    PasswordHasher: Salted password hashing using bcrypt.
    JWTManager: Session token creation and validation.
    ProfileComposer: Merges identities with their role extensions.
    AuthService: Registration, login and account operations.
"""

from amistapp.domains.auth.jwt import JWTManager
from amistapp.domains.auth.password import PasswordHasher
from amistapp.domains.auth.profile import ProfileComposer, compose_profile
from amistapp.domains.auth.service import AuthService

__all__ = [
    "PasswordHasher",
    "JWTManager",
    "ProfileComposer",
    "compose_profile",
    "AuthService",
]
