# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for integration tests.

Provides credential stores on a fresh SQLite file per test.
"""

from typing import AsyncGenerator

import pytest_asyncio

from amistapp.core.config import Settings
from amistapp.infrastructure.database.connection import CredentialStore, create_store
from amistapp.infrastructure.database.migrations.runner import run_startup_migrations


@pytest_asyncio.fixture(scope="function")
async def store(settings: Settings) -> AsyncGenerator[CredentialStore, None]:
    """Create an empty credential store."""
    credential_store = create_store(settings)

    yield credential_store

    await credential_store.dispose()


@pytest_asyncio.fixture(scope="function")
async def migrated_store(
    store: CredentialStore,
    settings: Settings,
) -> AsyncGenerator[CredentialStore, None]:
    """Create a credential store with the packaged migrations applied."""
    await run_startup_migrations(store, settings)
    yield store
