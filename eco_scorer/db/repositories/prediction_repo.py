"""
Repository for ``prediction_records``, the append-only prediction audit trail.

No update or delete method exists; migration 0002 also blocks both in the
database.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date, datetime
from typing import Optional

from eco_scorer.db.repositories.base import (
    BaseRepository,
    from_db_timestamp,
    to_db_timestamp,
)
from eco_scorer.models.prediction import PredictionRecord

logger = logging.getLogger(__name__)


class PredictionRepository(BaseRepository):
    """Append and query access to ``prediction_records``."""

    def append(self, record: PredictionRecord) -> int:
        """Insert ``record`` and return its ``prediction_id``."""
        self.execute(
            """
            INSERT INTO prediction_records (
                user_id, input_data, predicted_score, confidence,
                model_version, created_at
            ) VALUES (?, ?, ?, ?, ?, ?);
            """,
            (
                record.user_id,
                json.dumps(record.input_data, sort_keys=True),
                record.predicted_score,
                record.confidence,
                record.model_version,
                to_db_timestamp(record.created_at),
            ),
        )
        return self.last_insert_rowid()

    def get(self, prediction_id: int) -> Optional[PredictionRecord]:
        row = self.fetchone(
            "SELECT * FROM prediction_records WHERE prediction_id = ?;",
            (prediction_id,),
        )
        return _row_to_record(row) if row else None

    def latest_before(self, user_id: int, before: datetime) -> Optional[PredictionRecord]:
        """Return the user's newest record with ``created_at <= before``.

        Ties on ``created_at`` resolve to the highest ``prediction_id``.
        """
        row = self.fetchone(
            """
            SELECT * FROM prediction_records
            WHERE user_id = ? AND created_at <= ?
            ORDER BY created_at DESC, prediction_id DESC
            LIMIT 1;
            """,
            (user_id, to_db_timestamp(before)),
        )
        return _row_to_record(row) if row else None

    def latest(self, user_id: int) -> Optional[PredictionRecord]:
        row = self.fetchone(
            """
            SELECT * FROM prediction_records
            WHERE user_id = ?
            ORDER BY created_at DESC, prediction_id DESC
            LIMIT 1;
            """,
            (user_id,),
        )
        return _row_to_record(row) if row else None

    def count_for_user(self, user_id: int) -> int:
        row = self.fetchone(
            "SELECT COUNT(*) AS n FROM prediction_records WHERE user_id = ?;",
            (user_id,),
        )
        return int(row["n"]) if row else 0

    def daily_average_scores(
        self,
        user_id: int,
        start: date,
        end: date,
    ) -> list[tuple[date, float]]:
        """Average score per UTC calendar day in ``[start, end]``, oldest first.

        Days without predictions are omitted.
        """
        rows = self.fetchall(
            """
            SELECT substr(created_at, 1, 10) AS day,
                   AVG(predicted_score)      AS avg_score
            FROM prediction_records
            WHERE user_id = ?
              AND substr(created_at, 1, 10) BETWEEN ? AND ?
            GROUP BY day
            ORDER BY day ASC;
            """,
            (user_id, start.isoformat(), end.isoformat()),
        )
        return [(date.fromisoformat(r["day"]), float(r["avg_score"])) for r in rows]

    def list_for_user(
        self,
        user_id: int,
        limit: Optional[int] = None,
    ) -> list[PredictionRecord]:
        """Return the user's records, oldest first, optionally capped at ``limit``."""
        sql = """
            SELECT * FROM prediction_records
            WHERE user_id = ?
            ORDER BY created_at ASC, prediction_id ASC
        """
        params: tuple = (user_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (user_id, limit)
        return [_row_to_record(r) for r in self.fetchall(sql + ";", params)]


def _row_to_record(row: sqlite3.Row) -> PredictionRecord:
    return PredictionRecord(
        prediction_id=row["prediction_id"],
        user_id=row["user_id"],
        input_data=json.loads(row["input_data"]),
        predicted_score=row["predicted_score"],
        confidence=row["confidence"],
        model_version=row["model_version"],
        created_at=from_db_timestamp(row["created_at"]),
    )
