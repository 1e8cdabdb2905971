"""Tests for build_dashboard aggregation."""

from __future__ import annotations

from datetime import date, datetime, timezone

from eco_scorer.db.repositories.daily_log_repo import DailyLogRepository
from eco_scorer.db.repositories.profile_repo import ProfileRepository
from eco_scorer.history.dashboard import build_dashboard
from eco_scorer.history.tracker import PredictionHistory
from eco_scorer.models.prediction import PredictionRecord

TODAY = date(2025, 3, 12)


def _append(conn, score: float, day: int) -> None:
    PredictionHistory(conn).append(
        PredictionRecord(
            user_id=1,
            input_data={},
            predicted_score=score,
            model_version="v1.0",
            created_at=datetime(2025, 3, day, 12, tzinfo=timezone.utc),
        )
    )


def test_empty_dashboard(in_memory_db):
    payload = build_dashboard(in_memory_db, 1, TODAY)
    assert payload.profile_complete is False
    assert payload.latest_score is None
    assert payload.today_summary is None
    assert payload.week_trend == []
    assert payload.total_predictions == 0
    assert payload.trips_today == 0


def test_full_dashboard(in_memory_db, sample_profile, sample_log):
    ProfileRepository(in_memory_db).upsert(sample_profile)
    DailyLogRepository(in_memory_db).upsert(sample_log)
    _append(in_memory_db, 40.0, 10)
    _append(in_memory_db, 60.0, 12)

    payload = build_dashboard(in_memory_db, 1, TODAY, trips_today=2)

    assert payload.profile_complete is True
    assert payload.latest_score == 60.0
    assert payload.total_predictions == 2
    assert payload.trips_today == 2
    assert payload.today_summary is not None
    assert payload.today_summary.total_distance == 17.5
    assert payload.today_summary.meals_logged == 3
    assert payload.today_summary.recycled is True
    assert [p.date for p in payload.week_trend] == [date(2025, 3, 10), TODAY]


def test_log_for_other_day_not_summarized(in_memory_db, sample_log):
    DailyLogRepository(in_memory_db).upsert(sample_log)
    payload = build_dashboard(in_memory_db, 1, date(2025, 3, 13))
    assert payload.today_summary is None


def test_trend_window_length(in_memory_db):
    _append(in_memory_db, 40.0, 10)
    _append(in_memory_db, 60.0, 12)
    payload = build_dashboard(in_memory_db, 1, TODAY, trend_days=2)
    assert [p.date for p in payload.week_trend] == [TODAY]
    assert payload.total_predictions == 2
