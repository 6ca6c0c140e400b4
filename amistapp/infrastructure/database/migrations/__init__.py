# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

SQL migration files live in ``sql/`` and are applied by the runner at
application startup or with ``python -m amistapp.infrastructure.database.migrations``.
"""

from amistapp.infrastructure.database.migrations.runner import (
    MigrationError,
    MigrationReport,
    MigrationRunner,
    MigrationUnit,
    discover_migrations,
    ensure_bootstrap_admin,
    run_startup_migrations,
    split_statements,
)

__all__ = [
    "MigrationError",
    "MigrationReport",
    "MigrationRunner",
    "MigrationUnit",
    "discover_migrations",
    "ensure_bootstrap_admin",
    "run_startup_migrations",
    "split_statements",
]
