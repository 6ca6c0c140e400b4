# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for AmistApp.
Settings are loaded from environment variables (and an optional ``.env``
file) with development defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection,
but every component also accepts an explicit Settings object so tests and
tools can build their own.

Example:
    >>> from amistapp.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Self

from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Signing secret the original deployment fell back to when none was set.
INSECURE_DEFAULT_JWT_SECRET = "your-secret-key"

# bcrypt hash shipped with the bootstrap administrator account.
BOOTSTRAP_ADMIN_PASSWORD_HASH = "$2b$10$8Kvh3IxH8tKe3YOIXnBk7.u.oL5QYt1kRnJyW9DQGQ3YNh8kflZPy"

DEFAULT_MIGRATIONS_DIRECTORY = (
    Path(__file__).resolve().parents[2] / "infrastructure" / "database" / "migrations" / "sql"
)


class DatabaseSettings(BaseSettings):
    """Relational store configuration.

    Attributes:
        url: SQLAlchemy async database URL.
        echo: Log every SQL statement (debugging only).
    """

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        extra="ignore",
    )

    url: str = "sqlite+aiosqlite:///./amistapp.db"
    echo: bool = False


class JWTSettings(BaseSettings):
    """Session token configuration.

    Attributes:
        secret_key: Secret key for signing tokens.
        algorithm: JWT signing algorithm.
        expire_hours: Validity window of a session token.
        issuer: Value of the ``iss`` claim.
        audience: Value of the ``aud`` claim.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
        populate_by_name=True,
    )

    secret_key: SecretStr = Field(
        default=SecretStr(INSECURE_DEFAULT_JWT_SECRET),
        validation_alias=AliasChoices("JWT_SECRET_KEY", "JWT_SECRET"),
    )
    algorithm: str = "HS256"
    expire_hours: int = Field(default=24, gt=0)
    issuer: str = "amistapp-backend"
    audience: str = "amistapp-frontend"

    @property
    def uses_insecure_secret(self) -> bool:
        """Check whether the signing secret is the well-known fallback."""
        return self.secret_key.get_secret_value() == INSECURE_DEFAULT_JWT_SECRET


class PasswordSettings(BaseSettings):
    """Password hashing configuration.

    Attributes:
        bcrypt_rounds: bcrypt work factor (log2 of the iteration count).
    """

    model_config = SettingsConfigDict(
        env_prefix="PASSWORD_",
        extra="ignore",
    )

    bcrypt_rounds: int = Field(default=10, ge=4, le=31)


class MigrationSettings(BaseSettings):
    """Schema migration configuration.

    Attributes:
        directory: Directory holding the migration scripts.
        suffix: File suffix that marks a migration script.
    """

    model_config = SettingsConfigDict(
        env_prefix="MIGRATIONS_",
        extra="ignore",
    )

    directory: Path = DEFAULT_MIGRATIONS_DIRECTORY
    suffix: str = ".sql"


class BootstrapAdminSettings(BaseSettings):
    """Administrator created when the store has none.

    Attributes:
        name: Display name of the bootstrap administrator.
        email: Login email of the bootstrap administrator.
        password_hash: Pre-computed bcrypt hash of the initial password.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOOTSTRAP_ADMIN_",
        extra="ignore",
    )

    name: str = "Administrador"
    email: str = "admin@amistapp.cl"
    password_hash: SecretStr = SecretStr(BOOTSTRAP_ADMIN_PASSWORD_HASH)


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:5173,http://localhost:3000"
    allow_credentials: bool = True
    allow_methods: list[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    allow_headers: list[str] = ["Content-Type", "Authorization"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
        populate_by_name=True,
    )

    host: str = "0.0.0.0"
    port: int = Field(
        default=3001,
        validation_alias=AliasChoices("API_PORT", "PORT"),
    )
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Relational store settings.
        jwt: Session token settings.
        hashing: Password hashing settings.
        migrations: Schema migration settings.
        bootstrap_admin: Bootstrap administrator settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    hashing: PasswordSettings = Field(default_factory=PasswordSettings)
    migrations: MigrationSettings = Field(default_factory=MigrationSettings)
    bootstrap_admin: BootstrapAdminSettings = Field(default_factory=BootstrapAdminSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_signing_secret(self) -> Self:
        """Reject signing secrets that cannot protect session tokens.

        An empty secret is refused everywhere. The insecure fallback secret
        is tolerated only in development, where startup logs a warning.

        Raises:
            ValueError: If the secret is empty, or is the insecure fallback
                outside development.
        """
        secret = self.jwt.secret_key.get_secret_value()
        if not secret.strip():
            raise ValueError(
                "JWT secret key must not be empty. Set JWT_SECRET_KEY environment variable."
            )
        if self.environment != "development" and self.jwt.uses_insecure_secret:
            raise ValueError(
                f"JWT secret key must be changed from default in {self.environment}. "
                "Set JWT_SECRET_KEY environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing.
    """
    get_settings.cache_clear()
