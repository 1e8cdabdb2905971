"""
Shared pytest fixtures for the eco scorer test suite.

Provides:
  - ``in_memory_db``: a fresh in-memory SQLite connection with the schema and
    migrations applied. Created anew for each test that requests it.
  - Sample profile / daily log factories.
  - ``StubRegressor`` + ``stub_metadata`` / ``stub_snapshot`` / ``loaded_store``:
    a published model that needs no trained artifact.
  - ``app_config`` / ``service``: an ``EcoScoreService`` on a temp-file DB
    with a controllable clock.
"""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import numpy as np
import pytest

from eco_scorer.config import AppConfig, DatabaseConfig, LoggingConfig
from eco_scorer.db.migrations import run_migrations
from eco_scorer.db.schema import apply_schema
from eco_scorer.ml.model_store import DEFAULT_VOCABULARIES, ModelMetadata, ModelSnapshot, ModelStore
from eco_scorer.models.daily_log import DailyLog
from eco_scorer.models.profile import EcoProfile
from eco_scorer.service import EcoScoreService

TODAY = date(2025, 3, 12)  # a Wednesday in spring


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with schema + migrations applied."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    run_migrations(conn)
    yield conn
    conn.close()


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def sample_profile() -> EcoProfile:
    """A partially filled profile for user 1."""
    return EcoProfile(
        user_id=1,
        household_size=3,
        diet_type="omnivore",
        location_type="suburban",
        uses_solar_panels=True,
        renewable_energy_percent=40.0,
        recycling_practiced=True,
    )


@pytest.fixture
def sample_log() -> DailyLog:
    """A daily log for user 1 on ``TODAY``."""
    return DailyLog(
        user_id=1,
        log_date=TODAY,
        car_km=12.0,
        bus_km=4.0,
        walk_km=1.5,
        electricity_kwh=9.0,
        red_meat_meals=1,
        vegetarian_meals=2,
        general_waste_kg=1.0,
        recycled_waste_kg=1.0,
        recycled_today=True,
    )


# ── Model fixtures ────────────────────────────────────────────────────────────

class StubRegressor:
    """Regressor returning ``value`` for every row and remembering its input."""

    def __init__(self, value: float = 72.5) -> None:
        self.value = value
        self.calls: list[np.ndarray] = []

    def predict(self, X):
        X = np.asarray(X)
        self.calls.append(X)
        return np.full(X.shape[0], self.value, dtype=np.float64)


STUB_FEATURES = [
    "car_km",
    "bike_km",
    "total_distance",
    "household_size",
    "uses_solar_panels",
    "renewable_energy_percent",
    "diet_type_vegetarian",
    "diet_type_vegan",
    "diet_type_pescatarian",
    "season",
    "is_weekend",
    "not_a_feature",
]


@pytest.fixture
def stub_metadata() -> ModelMetadata:
    return ModelMetadata(
        version="test-1",
        model_type="stub",
        feature_names=list(STUB_FEATURES),
        categorical_vocabularies={k: list(v) for k, v in DEFAULT_VOCABULARIES.items()},
    )


@pytest.fixture
def stub_regressor() -> StubRegressor:
    return StubRegressor()


@pytest.fixture
def stub_snapshot(stub_regressor: StubRegressor, stub_metadata: ModelMetadata) -> ModelSnapshot:
    return ModelSnapshot(regressor=stub_regressor, metadata=stub_metadata)


@pytest.fixture
def loaded_store(stub_snapshot: ModelSnapshot) -> ModelStore:
    store = ModelStore()
    store.publish(stub_snapshot)
    return store


# ── Service fixtures ──────────────────────────────────────────────────────────

class FakeClock:
    """Deterministic UTC clock; each call advances by ``step``."""

    def __init__(self, start: datetime, step: timedelta = timedelta(minutes=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(db_path=str(tmp_path / "db" / "eco_test.db")),
        logging=LoggingConfig(log_file=""),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 12, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def service(app_config: AppConfig, loaded_store: ModelStore, clock: FakeClock) -> EcoScoreService:
    svc = EcoScoreService(app_config, store=loaded_store, clock=clock)
    svc.initialize_database()
    return svc
