"""
SQLite connections for the eco scorer.

One connection per service call: ``open_database(config.database)`` (or the
lower-level ``get_connection``) yields a connection that commits when the
block exits cleanly and rolls back otherwise.  A prediction's history append
therefore either lands together with the rest of the call or not at all.

On-disk databases run in WAL mode so dashboard reads do not block on history
writes.  ``":memory:"`` is accepted for tests and skips WAL.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from eco_scorer.config import DatabaseConfig

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def _configure(conn: sqlite3.Connection, wal_mode: bool, busy_timeout_ms: int, on_disk: bool) -> None:
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
    if wal_mode and on_disk:
        conn.execute("PRAGMA journal_mode = WAL;")


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Iterator[sqlite3.Connection]:
    """Yield a configured connection to ``db_path``.

    Parent directories of an on-disk database are created on first use.

    Args:
        db_path: Database file, or ``":memory:"``.
        wal_mode: Switch on-disk databases to WAL journaling.
        busy_timeout_ms: How long a locked write waits before
            ``sqlite3.OperationalError``.

    Raises:
        sqlite3.Error: Propagated after the transaction is rolled back.
    """
    on_disk = db_path != MEMORY_DB
    if on_disk:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    try:
        _configure(conn, wal_mode, busy_timeout_ms, on_disk)
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        logger.debug("Rolled back transaction on %s.", db_path)
        raise
    finally:
        conn.close()


def open_database(config: "DatabaseConfig"):
    """``get_connection`` with the settings from a ``DatabaseConfig``."""
    return get_connection(
        config.db_path,
        wal_mode=config.wal_mode,
        busy_timeout_ms=config.busy_timeout_ms,
    )
