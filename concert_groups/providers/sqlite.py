"""Connection helper shared by the SQLite-backed providers.

Every provider call acquires its own short-lived connection and releases it
when the unit of work ends.  There is no module-level handle, so tests can
point each provider at its own temp-file database.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

# SQLite's own timestamp format, shared by every table's DEFAULT clauses.
NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"


@asynccontextmanager
async def open_connection(
    db_path: Path,
    timeout: float = 5.0,
) -> AsyncIterator[aiosqlite.Connection]:
    """Open a connection with row access by name and foreign keys enforced.

    *timeout* is SQLite's busy timeout: how long a writer waits for another
    writer's lock before failing with ``database is locked``.
    """
    async with aiosqlite.connect(str(db_path), timeout=timeout) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        yield db


def prepare_path(db_path: Path) -> None:
    """Create the database's parent directory if it does not exist."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
