"""
Prediction history: append-only records and the views derived from them.

``previous_score`` must be read *before* the current prediction is appended,
otherwise the delta would compare a score with itself.  Concurrent
predictions for the same user may both read the same previous score; that
race is accepted.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from typing import Optional

from eco_scorer.db.repositories.prediction_repo import PredictionRepository
from eco_scorer.models.prediction import PredictionRecord, TrendPoint
from eco_scorer.utils.time_utils import trailing_window

logger = logging.getLogger(__name__)


class PredictionHistory:
    """History operations bound to one open connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._repo = PredictionRepository(conn)

    def previous_score(self, user_id: int, before: datetime) -> Optional[float]:
        """Score of the user's latest record created at or before ``before``."""
        record = self._repo.latest_before(user_id, before)
        return record.predicted_score if record else None

    def append(self, record: PredictionRecord) -> PredictionRecord:
        """Persist ``record`` and return it with its assigned ``prediction_id``.

        Raises:
            sqlite3.Error: Propagated unchanged; the caller's transaction
                rolls back.
        """
        prediction_id = self._repo.append(record)
        logger.debug(
            "Recorded prediction %d for user %d (score=%.2f).",
            prediction_id, record.user_id, record.predicted_score,
        )
        return record.model_copy(update={"prediction_id": prediction_id})

    def daily_trend(self, user_id: int, end_date: date, days: int = 7) -> list[TrendPoint]:
        """Per-day average scores over the ``days`` ending on ``end_date``.

        Sparse: only days with at least one prediction appear, oldest first.
        """
        start, end = trailing_window(end_date, days)
        return [
            TrendPoint(date=day, avg_score=round(avg, 2))
            for day, avg in self._repo.daily_average_scores(user_id, start, end)
        ]

    def latest_score(self, user_id: int) -> Optional[float]:
        record = self._repo.latest(user_id)
        return record.predicted_score if record else None

    def count(self, user_id: int) -> int:
        return self._repo.count_for_user(user_id)

    def records(self, user_id: int, limit: Optional[int] = None) -> list[PredictionRecord]:
        return self._repo.list_for_user(user_id, limit=limit)
