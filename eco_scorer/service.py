"""
EcoScoreService: the orchestration layer behind every entry point.

Prediction control flow
-----------------------
    1. Take the published model snapshot (``ServiceUnavailable`` if none).
    2. Parse the request; load the profile and the log for the feature date.
    3. Resolve + validate features against the snapshot's vocabularies.
    4. Encode, predict, categorize, recommend.
    5. Read the previous score, then append the new record.
    6. Return the response.

Steps 2-5 share one connection/transaction.  If the history append fails,
the exception propagates and the transaction rolls back; a score is never
returned without being recorded.

Each public call opens its own SQLite connection, so a single service
instance can be used from concurrent callers.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

import pydantic

from eco_scorer.config import AppConfig
from eco_scorer.db.connection import open_database
from eco_scorer.db.migrations import initialize_database
from eco_scorer.db.repositories.daily_log_repo import DailyLogRepository
from eco_scorer.db.repositories.profile_repo import ProfileRepository
from eco_scorer.errors import ValidationError
from eco_scorer.features.resolver import resolve_features
from eco_scorer.history.dashboard import build_dashboard
from eco_scorer.history.tracker import PredictionHistory
from eco_scorer.ml.encoder import encode_features
from eco_scorer.ml.model_store import DEFAULT_VOCABULARIES, ModelStore
from eco_scorer.ml.predictor import ScorePredictor
from eco_scorer.models.daily_log import DailyLog
from eco_scorer.models.prediction import (
    DashboardPayload,
    ModelInfo,
    PredictionRecord,
    PredictionRequest,
    PredictionResponse,
    ScoreCategoryInfo,
    parse_request,
)
from eco_scorer.models.profile import EcoProfile
from eco_scorer.recommendations.rules import DEFAULT_RULES, RecommendationRule, generate_recommendations
from eco_scorer.reporting.export import export_history
from eco_scorer.scoring.categorizer import DEFAULT_BANDS, categorize
from eco_scorer.utils.time_utils import trailing_window, utcnow

logger = logging.getLogger(__name__)


class EcoScoreService:
    """Eco-score prediction, profile/log maintenance and history queries.

    Args:
        config: Application configuration.
        store: Model store to read snapshots from; a new empty store if omitted.
        rules: Recommendation rule table.
        clock: Returns the current aware UTC datetime.
    """

    def __init__(
        self,
        config: AppConfig,
        store: Optional[ModelStore] = None,
        rules: Sequence[RecommendationRule] = DEFAULT_RULES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config
        self.store = store if store is not None else ModelStore()
        self._rules = tuple(rules)
        self._clock = clock

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def _connect(self):
        return open_database(self.config.database)

    def initialize_database(self) -> int:
        """Apply the schema and pending migrations; return migrations applied."""
        with self._connect() as conn:
            return initialize_database(conn)

    async def load_model(self) -> bool:
        """Load the configured model artifact into the store."""
        model = self.config.model
        return await self.store.load(
            model.artifact_path, model.metadata_path, timeout_s=model.load_timeout_s
        )

    # ── Prediction ────────────────────────────────────────────────────────────

    def predict(
        self,
        user_id: int,
        request: PredictionRequest | Mapping[str, Any],
    ) -> PredictionResponse:
        """Score one request for ``user_id`` and record it in the history.

        Raises:
            ServiceUnavailable: No model is loaded.
            ValidationError: The request (or the stored profile) is invalid.
            sqlite3.Error: The history append failed.
        """
        snapshot = self.store.snapshot()
        parsed = parse_request(request)
        now = self._clock()
        today = now.date()
        feature_date = parsed.date or today

        with self._connect() as conn:
            profile = ProfileRepository(conn).get_by_user(user_id)
            daily_log = DailyLogRepository(conn).get(user_id, feature_date)

            resolved = resolve_features(
                parsed,
                profile,
                daily_log,
                snapshot.metadata.categorical_vocabularies,
                today=today,
            )
            vector = encode_features(resolved, snapshot.metadata)
            score = ScorePredictor(snapshot).predict(vector)
            category = categorize(score, snapshot.metadata.score_bands)
            recommendations = generate_recommendations(
                resolved, self._rules, max_count=self.config.recommendations.max_count
            )

            history = PredictionHistory(conn)
            previous = history.previous_score(user_id, now)
            history.append(
                PredictionRecord(
                    user_id=user_id,
                    input_data=resolved.to_input_data(),
                    predicted_score=score,
                    confidence=None,
                    model_version=snapshot.metadata.version,
                    created_at=now,
                )
            )

        logger.info(
            "Predicted %.2f (%s) for user %d with model %s.",
            score, category, user_id, snapshot.metadata.version,
            extra={"user_id": user_id, "model_version": snapshot.metadata.version, "score": score},
        )
        return PredictionResponse(
            predicted_score=score,
            score_category=category,
            recommendations=recommendations,
            data_sources=dict(resolved.provenance),
            previous_score=previous,
        )

    def model_info(self) -> ModelInfo:
        """Describe the published model, or the defaults when none is loaded."""
        snapshot = self.store.current()
        if snapshot is None:
            return ModelInfo(
                model_loaded=False,
                features_count=0,
                categorical_options={n: list(v) for n, v in DEFAULT_VOCABULARIES.items()},
                score_categories=[
                    ScoreCategoryInfo(min=b.min, max=b.max, label=b.label) for b in DEFAULT_BANDS
                ],
            )

        meta = snapshot.metadata
        return ModelInfo(
            model_loaded=True,
            model_version=meta.version,
            model_type=meta.model_type,
            features_count=len(meta.feature_names),
            categorical_options={n: list(v) for n, v in meta.categorical_vocabularies.items()},
            score_categories=[
                ScoreCategoryInfo(min=b.min, max=b.max, label=b.label) for b in meta.score_bands
            ],
        )

    # ── Profile & daily log ───────────────────────────────────────────────────

    def save_profile(self, user_id: int, data: Mapping[str, Any]) -> EcoProfile:
        """Create or replace the user's profile from a field mapping.

        Raises:
            ValidationError: If a field is invalid.
        """
        profile = _build(EcoProfile, {**data, "user_id": user_id})
        with self._connect() as conn:
            stored = ProfileRepository(conn).upsert(profile)
        logger.info("Saved profile for user %d.", user_id)
        return stored

    def get_profile(self, user_id: int) -> Optional[EcoProfile]:
        with self._connect() as conn:
            return ProfileRepository(conn).get_by_user(user_id)

    def log_day(
        self,
        user_id: int,
        data: Mapping[str, Any],
        log_date: Optional[date] = None,
    ) -> DailyLog:
        """Create or overwrite the user's log for ``log_date`` (default: today).

        Raises:
            ValidationError: If a measurement is negative, infinite or mistyped,
                or a key is not a known measurement.
        """
        day = log_date or data.get("log_date") or self._clock().date()
        log = _build(DailyLog, {**data, "user_id": user_id, "log_date": day})
        with self._connect() as conn:
            stored = DailyLogRepository(conn).upsert(log)
        logger.info("Saved daily log for user %d on %s.", user_id, stored.log_date)
        return stored

    def daily_logs(
        self,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[DailyLog]:
        """The user's logs in ``[start, end]``, oldest first.

        ``end`` defaults to today and ``start`` to the dashboard trend window
        ending on ``end``.

        Raises:
            ValidationError: If ``start`` is after ``end``.
        """
        end = end or self._clock().date()
        if start is None:
            start, _ = trailing_window(end, self.config.dashboard.trend_days)
        if start > end:
            raise ValidationError("start", f"{start} is after end {end}", start)
        with self._connect() as conn:
            return DailyLogRepository(conn).list_range(user_id, start, end)

    # ── History ───────────────────────────────────────────────────────────────

    def dashboard(
        self,
        user_id: int,
        trips_today: int = 0,
        today: Optional[date] = None,
    ) -> DashboardPayload:
        with self._connect() as conn:
            return build_dashboard(
                conn,
                user_id,
                today or self._clock().date(),
                trips_today=trips_today,
                trend_days=self.config.dashboard.trend_days,
            )

    def history(self, user_id: int, limit: Optional[int] = None) -> list[PredictionRecord]:
        with self._connect() as conn:
            return PredictionHistory(conn).records(user_id, limit=limit)

    def export_history(self, user_id: int, output_path: Path) -> Path:
        """Write the user's prediction history to ``.csv`` or ``.json``."""
        records = self.history(user_id)
        path = export_history(records, output_path)
        logger.info("Exported %d prediction(s) for user %d to %s.", len(records), user_id, path)
        return path


def _build(model_cls: type[pydantic.BaseModel], data: dict[str, Any]):
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc
