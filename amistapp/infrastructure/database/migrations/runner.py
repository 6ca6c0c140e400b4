# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migration runner.

Migrations are plain SQL files in a directory, applied in file-name order.
Each file name starts with a numeric prefix (``001_initial_schema.sql``).
The ``migrations`` table records every applied file name and is the only
source of truth for what has already run; a recorded file is never executed
again, even if its content changes.

Startup also makes sure an administrator exists, inserting a bootstrap
account when the store has none.

Example:
    from amistapp.infrastructure.database.migrations.runner import run_startup_migrations

    report = await run_startup_migrations(store, settings)
    logger.info("Applied %d migrations", len(report.applied))
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from amistapp.infrastructure.database.connection import (
    CredentialStore,
    DatabaseError,
    StoreTransaction,
)

if TYPE_CHECKING:
    from amistapp.core.config.settings import Settings

logger = logging.getLogger(__name__)

MIGRATIONS_TABLE_DDL = """
    CREATE TABLE IF NOT EXISTS migrations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

_PREFIX_PATTERN = re.compile(r"^(\d+)_")


class MigrationError(Exception):
    """Raised when migrations cannot be discovered or applied.

    Attributes:
        message: Human-readable error description.
        migration: Name of the migration being processed, if any.
    """

    def __init__(self, message: str, migration: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.migration = migration


@dataclass(frozen=True)
class MigrationUnit:
    """A discovered migration file.

    Attributes:
        name: File name, recorded in the migrations table once applied.
        sequence: Numeric prefix of the file name.
        path: Location of the SQL file.
    """

    name: str
    sequence: int
    path: Path

    def statements(self) -> list[str]:
        """Read the file and split it into executable statements."""
        return split_statements(self.path.read_text(encoding="utf-8"))


@dataclass
class MigrationReport:
    """Outcome of a startup migration run.

    Attributes:
        applied: Names of the migrations applied by this run, in order.
        admin_created: Whether a bootstrap administrator was inserted.
    """

    applied: list[str] = field(default_factory=list)
    admin_created: bool = False


def split_statements(sql: str) -> list[str]:
    """Split SQL text on ``;`` into individual statements.

    Chunks that are empty or hold only ``--`` comments are dropped.

    Args:
        sql: Contents of a migration file.

    Returns:
        Statements in file order, stripped of surrounding whitespace.
    """
    statements = []
    for chunk in sql.split(";"):
        code_lines = [
            line for line in chunk.splitlines()
            if line.strip() and not line.strip().startswith("--")
        ]
        if code_lines:
            statements.append(chunk.strip())
    return statements


def discover_migrations(directory: Path, suffix: str = ".sql") -> list[MigrationUnit]:
    """List migration files in execution order.

    Files are filtered by suffix and sorted by name. The sorted order must
    agree with the numeric prefixes.

    Args:
        directory: Directory holding the migration files.
        suffix: File suffix that marks a migration.

    Returns:
        Migration units sorted by file name.

    Raises:
        MigrationError: If the directory is missing, a file name has no
            numeric prefix, two files share a prefix, or name order and
            numeric order disagree.
    """
    if not directory.is_dir():
        raise MigrationError(f"Migrations directory not found: {directory}")

    names = sorted(
        entry.name for entry in directory.iterdir()
        if entry.is_file() and entry.name.endswith(suffix)
    )

    units: list[MigrationUnit] = []
    seen: dict[int, str] = {}
    for name in names:
        match = _PREFIX_PATTERN.match(name)
        if match is None:
            raise MigrationError(
                f"Migration file name must start with a numeric prefix: {name}",
                migration=name,
            )
        sequence = int(match.group(1))

        if sequence in seen:
            raise MigrationError(
                f"Migrations {seen[sequence]} and {name} share sequence number {sequence}",
                migration=name,
            )
        if units and sequence < units[-1].sequence:
            raise MigrationError(
                f"Migration {name} sorts after {units[-1].name} but has a lower sequence "
                "number; zero-pad the prefixes",
                migration=name,
            )

        seen[sequence] = name
        units.append(MigrationUnit(name=name, sequence=sequence, path=directory / name))

    return units


class MigrationRunner:
    """Applies pending SQL migrations to the credential store.

    Each pending unit runs in its own transaction together with the insert of
    its record. A failing statement rolls the whole unit back, so nothing is
    recorded and the next run retries it from the start.
    """

    def __init__(self, store: CredentialStore, directory: Path, suffix: str = ".sql") -> None:
        """Initialize the runner.

        Args:
            store: Credential store to migrate.
            directory: Directory holding the migration files.
            suffix: File suffix that marks a migration.
        """
        self._store = store
        self._directory = directory
        self._suffix = suffix

    async def applied_names(self) -> set[str]:
        """Names of the migrations already recorded."""
        await self._ensure_migrations_table()
        rows = await self._store.query_many("SELECT name FROM migrations")
        return {row["name"] for row in rows}

    async def pending(self) -> list[MigrationUnit]:
        """Discovered migrations that have not been recorded yet."""
        units = discover_migrations(self._directory, self._suffix)
        applied = await self.applied_names()
        return [unit for unit in units if unit.name not in applied]

    async def apply_all(self) -> list[str]:
        """Apply every pending migration in order.

        Returns:
            Names of the migrations applied by this call. Empty when the
            store is already up to date.

        Raises:
            MigrationError: If discovery fails or a migration cannot be applied.
        """
        try:
            pending = await self.pending()
        except DatabaseError as e:
            raise MigrationError(f"Cannot read migration records: {e}") from e

        if not pending:
            logger.info("No pending migrations")
            return []

        logger.info(
            "Applying %d migrations: %s",
            len(pending),
            ", ".join(unit.name for unit in pending),
        )

        applied = []
        for unit in pending:
            await self._apply(unit)
            applied.append(unit.name)
            logger.info("Applied migration: %s", unit.name)

        return applied

    async def _ensure_migrations_table(self) -> None:
        await self._store.execute(MIGRATIONS_TABLE_DDL)

    async def _apply(self, unit: MigrationUnit) -> None:
        try:
            statements = unit.statements()
        except OSError as e:
            raise MigrationError(f"Cannot read migration {unit.name}: {e}", unit.name) from e

        try:
            async with self._store.transaction() as tx:
                for statement in statements:
                    await tx.execute(statement)
                await tx.execute(
                    "INSERT INTO migrations (name) VALUES (:name)",
                    {"name": unit.name},
                )
        except DatabaseError as e:
            logger.error("Migration %s failed, nothing recorded: %s", unit.name, e)
            raise MigrationError(f"Migration {unit.name} failed: {e}", unit.name) from e


async def _admin_exists(tx: StoreTransaction) -> bool:
    row = await tx.query_one("SELECT 1 AS found FROM users WHERE role = 'admin' LIMIT 1")
    return row is not None


async def ensure_bootstrap_admin(store: CredentialStore, settings: "Settings") -> bool:
    """Insert the bootstrap administrator if no administrator exists.

    Runs on every startup and is independent of the migration records.

    Args:
        store: Migrated credential store.
        settings: Settings holding the bootstrap account details.

    Returns:
        True if an administrator was created, False if one already existed.

    Raises:
        MigrationError: If the check or the insert fails, or the bootstrap
            email already belongs to a non-admin account.
    """
    admin = settings.bootstrap_admin
    email = admin.email.strip().lower()

    try:
        async with store.transaction() as tx:
            if await _admin_exists(tx):
                return False
            holder = await tx.query_one(
                "SELECT id, role FROM users WHERE email = :email",
                {"email": email},
            )
            if holder is not None:
                raise MigrationError(
                    f"Cannot create bootstrap administrator: {email} already belongs to "
                    f"{holder['role']} account {holder['id']}. Set BOOTSTRAP_ADMIN_EMAIL "
                    "to an unused address or promote an existing account to admin."
                )
            await tx.execute(
                """
                INSERT INTO users (email, password, name, role, status)
                VALUES (:email, :password, :name, 'admin', 'active')
                """,
                {
                    "email": email,
                    "password": admin.password_hash.get_secret_value(),
                    "name": admin.name,
                },
            )
    except DatabaseError as e:
        raise MigrationError(f"Cannot create bootstrap administrator: {e}") from e

    logger.warning(
        "Created bootstrap administrator %s; change its password after first login",
        admin.email,
    )
    return True


async def run_startup_migrations(store: CredentialStore, settings: "Settings") -> MigrationReport:
    """Bring the store to the current schema and ensure an administrator exists.

    Args:
        store: Credential store to migrate.
        settings: Application settings.

    Returns:
        Report of applied migrations and whether an admin was created.

    Raises:
        MigrationError: On any failure. Callers treat this as fatal.
    """
    runner = MigrationRunner(
        store,
        settings.migrations.directory,
        settings.migrations.suffix,
    )
    applied = await runner.apply_all()
    admin_created = await ensure_bootstrap_admin(store, settings)
    return MigrationReport(applied=applied, admin_created=admin_created)
