# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for AmistApp.

Settings are Pydantic-based and loaded from environment variables.

Example:
    >>> from amistapp.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.jwt.expire_hours)
    24
"""

from amistapp.core.config.settings import (
    BOOTSTRAP_ADMIN_PASSWORD_HASH,
    INSECURE_DEFAULT_JWT_SECRET,
    APISettings,
    BootstrapAdminSettings,
    CORSSettings,
    DatabaseSettings,
    JWTSettings,
    MigrationSettings,
    PasswordSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "APISettings",
    "BootstrapAdminSettings",
    "CORSSettings",
    "DatabaseSettings",
    "JWTSettings",
    "MigrationSettings",
    "PasswordSettings",
    # Constants
    "BOOTSTRAP_ADMIN_PASSWORD_HASH",
    "INSECURE_DEFAULT_JWT_SECRET",
]
