"""
SQLite connection management.

``get_connection()`` is the single way the engine opens the store. It yields a
connection that:
  - enforces foreign keys (assessment rows must exist before their actions),
  - optionally uses WAL so readers are not blocked by a generation run,
  - waits ``busy_timeout_ms`` on a locked database instead of failing fast,
  - returns ``sqlite3.Row`` rows,
  - commits on clean exit and rolls back on any exception.

The rollback-on-exception behaviour is what makes a generation run
all-or-nothing: the claim row and every action row share one transaction.

Usage::

    from assessment_engine.db.connection import get_connection

    with get_connection("data/db/assessment_engine.db") as conn:
        ImprovementActionRepository(conn).insert_actions(rows)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield a configured connection; commit on success, roll back on error.

    Args:
        db_path: Database file path (parent directories are created) or
            ``":memory:"``.
        wal_mode: Enable WAL journal mode. Ignored for in-memory databases.
        busy_timeout_ms: Lock wait before ``sqlite3.OperationalError``.

    Raises:
        sqlite3.OperationalError: If the database cannot be opened or stays locked.
    """
    in_memory = db_path == MEMORY_DB
    if not in_memory:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms};")
        if wal_mode and not in_memory:
            conn.execute("PRAGMA journal_mode = WAL;")

        yield conn
        conn.commit()

    except Exception:
        logger.debug("Rolling back transaction on %s", db_path)
        conn.rollback()
        raise

    finally:
        conn.close()
