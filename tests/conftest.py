# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests (on-disk SQLite per test)
"""

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import SecretStr

from amistapp.api.app import create_app
from amistapp.core.config import (
    DatabaseSettings,
    JWTSettings,
    PasswordSettings,
    Settings,
)

TEST_JWT_SECRET = "test-secret-key-for-testing-only"


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses a database)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Settings and Application Fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """Provide a fresh on-disk SQLite database URL."""
    return f"sqlite+aiosqlite:///{tmp_path / 'amistapp-test.db'}"


@pytest.fixture
def settings(database_url: str) -> Settings:
    """Provide settings pointing at a temporary database.

    bcrypt runs with the minimum work factor to keep tests fast.
    """
    return Settings(
        environment="development",
        log_level="WARNING",
        database=DatabaseSettings(url=database_url),
        jwt=JWTSettings(secret_key=SecretStr(TEST_JWT_SECRET)),
        hashing=PasswordSettings(bcrypt_rounds=4),
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Create the application with test settings."""
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Provide a test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def student_registration() -> dict[str, Any]:
    """Provide a valid student registration body."""
    return {
        "email": "a@b.com",
        "password": "secret1",
        "name": "A",
        "role": "student",
        "school": "X",
        "grade": "5",
    }


@pytest.fixture
def teacher_registration() -> dict[str, Any]:
    """Provide a valid teacher registration body."""
    return {
        "email": "profe@colegio.cl",
        "password": "pizarra123",
        "name": "Profesora Rojas",
        "role": "teacher",
        "school": "Liceo 7",
        "subjects": "Matemáticas, Física",
    }


@pytest.fixture
def tutor_registration() -> dict[str, Any]:
    """Provide a valid tutor registration body."""
    return {
        "email": "apoderado@correo.cl",
        "password": "familia99",
        "name": "Carlos Pérez",
        "role": "tutor",
        "phone": "+56911112222",
    }
