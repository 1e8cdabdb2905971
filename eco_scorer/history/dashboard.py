"""
Dashboard aggregation over a user's profile, today's log and prediction history.

Pure read path: nothing here writes to the database.
"""

from __future__ import annotations

import sqlite3
from datetime import date

from eco_scorer.db.repositories.daily_log_repo import DailyLogRepository
from eco_scorer.db.repositories.profile_repo import ProfileRepository
from eco_scorer.history.tracker import PredictionHistory
from eco_scorer.models.prediction import DashboardPayload, TodaySummary


def build_dashboard(
    conn: sqlite3.Connection,
    user_id: int,
    today: date,
    trips_today: int = 0,
    trend_days: int = 7,
) -> DashboardPayload:
    """Assemble the dashboard payload for ``user_id`` as of ``today``.

    Args:
        conn: Open connection.
        user_id: User to summarize.
        today: Calendar date treated as "today" (also the trend window end).
        trips_today: Trip count supplied by the trip-tracking collaborator.
        trend_days: Length of the trend window.

    Returns:
        ``DashboardPayload``; ``today_summary`` is ``None`` when no log exists
        for ``today``.
    """
    history = PredictionHistory(conn)
    log = DailyLogRepository(conn).get(user_id, today)

    summary = None
    if log is not None:
        summary = TodaySummary(
            total_distance=round(log.total_distance, 2),
            meals_logged=log.meals_logged,
            recycled=log.recycled_today,
        )

    return DashboardPayload(
        profile_complete=ProfileRepository(conn).exists(user_id),
        latest_score=history.latest_score(user_id),
        today_summary=summary,
        week_trend=history.daily_trend(user_id, today, days=trend_days),
        total_predictions=history.count(user_id),
        trips_today=trips_today,
    )
