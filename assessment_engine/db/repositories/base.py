"""
Shared SQLite helpers for the repository classes.

Repositories receive an open connection (normally from ``get_connection()``)
and never commit themselves; the caller's ``with`` block owns the
transaction. All SQL is explicit and lives in repository methods.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | dict[str, Any]


class BaseRepository:
    """SQL execution helpers bound to one connection.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        logger.debug("SQL: %s | params: %s", sql.strip(), params)
        return self.conn.execute(sql, params)

    def executemany(self, sql: str, params_list: list[Params]) -> sqlite3.Cursor:
        logger.debug("SQL (many): %s | count: %d", sql.strip(), len(params_list))
        return self.conn.executemany(sql, params_list)

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def count(self, sql: str, params: Params = ()) -> int:
        """Run a ``SELECT COUNT(*) AS n ...`` query and return ``n``."""
        row = self.fetchone(sql, params)
        return int(row["n"]) if row is not None else 0
