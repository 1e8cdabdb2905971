"""
Repository for ``daily_logs``: one activity log per (user, date).
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Optional

from eco_scorer.db.repositories.base import BaseRepository, from_db_timestamp
from eco_scorer.features.registry import MEASUREMENT_FIELDS
from eco_scorer.models.daily_log import DailyLog

logger = logging.getLogger(__name__)

_FLAG_FIELDS = ["recycled_today", "composted_today"]
_LOG_COLUMNS = [*MEASUREMENT_FIELDS, *_FLAG_FIELDS]


class DailyLogRepository(BaseRepository):
    """Read/write access to ``daily_logs``.  Rows are never deleted."""

    def upsert(self, log: DailyLog) -> DailyLog:
        """Insert or overwrite the log for ``(log.user_id, log.log_date)``."""
        columns = ", ".join(_LOG_COLUMNS)
        placeholders = ", ".join("?" for _ in _LOG_COLUMNS)
        updates = ", ".join(f"{name} = excluded.{name}" for name in _LOG_COLUMNS)
        params = tuple(
            int(getattr(log, name)) if name in _FLAG_FIELDS else getattr(log, name)
            for name in _LOG_COLUMNS
        )

        self.execute(
            f"""
            INSERT INTO daily_logs (user_id, log_date, {columns})
            VALUES (?, ?, {placeholders})
            ON CONFLICT(user_id, log_date) DO UPDATE SET
                {updates},
                updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            (log.user_id, log.log_date.isoformat(), *params),
        )
        logger.debug("Upserted daily log for user %d on %s.", log.user_id, log.log_date)
        stored = self.get(log.user_id, log.log_date)
        assert stored is not None
        return stored

    def get(self, user_id: int, log_date: date) -> Optional[DailyLog]:
        """Return the log for ``user_id`` on ``log_date``, or ``None``."""
        row = self.fetchone(
            "SELECT * FROM daily_logs WHERE user_id = ? AND log_date = ?;",
            (user_id, log_date.isoformat()),
        )
        return _row_to_log(row) if row else None

    def list_range(self, user_id: int, start: date, end: date) -> list[DailyLog]:
        """Return the user's logs with ``start <= log_date <= end``, oldest first."""
        rows = self.fetchall(
            """
            SELECT * FROM daily_logs
            WHERE user_id = ? AND log_date BETWEEN ? AND ?
            ORDER BY log_date ASC;
            """,
            (user_id, start.isoformat(), end.isoformat()),
        )
        return [_row_to_log(r) for r in rows]


def _row_to_log(row: sqlite3.Row) -> DailyLog:
    values = {
        name: bool(row[name]) if name in _FLAG_FIELDS else row[name]
        for name in _LOG_COLUMNS
    }
    return DailyLog(
        log_id=row["log_id"],
        user_id=row["user_id"],
        log_date=date.fromisoformat(row["log_date"]),
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
        **values,
    )
