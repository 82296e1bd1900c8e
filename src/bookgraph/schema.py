"""
Database schema management for the document store.

Migrations are plain SQL files applied in filename order. Every
migration is written to be re-runnable (IF NOT EXISTS / OR REPLACE),
so applying them again is safe.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pg_async import AsyncPostgresDB

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def get_migration_files() -> list[Path]:
    """Get all SQL migration files in order."""
    if not MIGRATIONS_DIR.exists():
        return []

    return sorted(MIGRATIONS_DIR.glob("*.sql"))


async def run_migrations(db: "AsyncPostgresDB") -> int:
    """
    Apply all migrations.

    Args:
        db: Database connection

    Returns:
        Number of migrations applied
    """
    migration_files = get_migration_files()
    if not migration_files:
        logger.warning("No migration files found in %s", MIGRATIONS_DIR)
        return 0

    applied = 0
    for migration_file in migration_files:
        logger.info("Applying migration: %s", migration_file.stem)
        await db.executescript(migration_file.read_text())
        applied += 1

    logger.info("Applied %d migrations", applied)
    return applied
