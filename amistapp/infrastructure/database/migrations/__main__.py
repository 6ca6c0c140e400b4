# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Apply pending migrations without starting the API server.

Usage:
    python -m amistapp.infrastructure.database.migrations [--directory DIR] [--status]
"""

import argparse
import asyncio
import sys
from pathlib import Path

from amistapp.core.config import get_settings
from amistapp.infrastructure.database.connection import DatabaseError, create_store
from amistapp.infrastructure.database.migrations.runner import (
    MigrationError,
    MigrationRunner,
    ensure_bootstrap_admin,
)
from amistapp.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def _run(directory: Path, status_only: bool) -> int:
    settings = get_settings()
    store = create_store(settings)
    runner = MigrationRunner(store, directory, settings.migrations.suffix)

    try:
        if status_only:
            pending = await runner.pending()
            for unit in pending:
                print(f"pending  {unit.name}")
            print(f"{len(pending)} pending migration(s)")
            return 0

        applied = await runner.apply_all()
        admin_created = await ensure_bootstrap_admin(store, settings)
        logger.info(
            "migrations_complete",
            applied=len(applied),
            admin_created=admin_created,
        )
        return 0
    except (MigrationError, DatabaseError) as e:
        logger.error("migrations_failed", error=str(e))
        return 1
    finally:
        await store.dispose()


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Apply AmistApp database migrations")
    parser.add_argument(
        "--directory",
        type=Path,
        default=settings.migrations.directory,
        help="directory holding the migration files",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="list pending migrations without applying them",
    )
    args = parser.parse_args(argv)

    setup_logging(settings)
    return asyncio.run(_run(args.directory, args.status))


if __name__ == "__main__":
    sys.exit(main())
