# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the credential store.

This package provides SQLAlchemy async access to the relational store that
holds identities, role extensions and migration records.

Example:
    from amistapp.infrastructure.database import create_store

    store = create_store(settings)
    async with store.transaction() as tx:
        await tx.execute("UPDATE users SET name = :name WHERE id = :id", {...})
"""

from amistapp.infrastructure.database.connection import (
    ConflictError,
    CredentialStore,
    DatabaseError,
    ExecResult,
    StoreTransaction,
    create_store,
)

__all__ = [
    "ConflictError",
    "CredentialStore",
    "DatabaseError",
    "ExecResult",
    "StoreTransaction",
    "create_store",
]
