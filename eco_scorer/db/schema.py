"""
SQLite schema DDL: all CREATE TABLE and CREATE INDEX statements.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is **idempotent**:
safe to call on an already-initialized database (e.g. after restart or in tests).

Tables
------
  1. eco_profiles        one row per user (``user_id`` UNIQUE)
  2. daily_logs          one row per (user_id, log_date)
  3. prediction_records  append-only prediction audit trail

``user_id`` is an opaque integer owned by the external auth service, so no
users table exists and no FK is declared on it.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_ECO_PROFILES = """
CREATE TABLE IF NOT EXISTS eco_profiles (
    profile_id               INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id                  INTEGER NOT NULL UNIQUE,
    household_size           INTEGER CHECK (household_size IS NULL OR household_size >= 0),
    age_group                TEXT,
    lifestyle_type           TEXT,
    location_type            TEXT,
    vehicle_type             TEXT,
    car_fuel_type            TEXT,
    diet_type                TEXT,
    uses_solar_panels        INTEGER,
    smart_thermostat         INTEGER,
    renewable_energy_percent REAL    CHECK (renewable_energy_percent IS NULL
                                            OR renewable_energy_percent BETWEEN 0 AND 100),
    recycling_practiced      INTEGER,
    composting_practiced     INTEGER,
    waste_bag_size           TEXT,
    social_activity          TEXT,
    created_at               TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at               TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_DAILY_LOGS = """
CREATE TABLE IF NOT EXISTS daily_logs (
    log_id               INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id              INTEGER NOT NULL,
    log_date             TEXT    NOT NULL,
    car_km               REAL    NOT NULL DEFAULT 0,
    bus_km               REAL    NOT NULL DEFAULT 0,
    train_metro_km       REAL    NOT NULL DEFAULT 0,
    bike_km              REAL    NOT NULL DEFAULT 0,
    walk_km              REAL    NOT NULL DEFAULT 0,
    electricity_kwh      REAL    NOT NULL DEFAULT 0,
    natural_gas_therms   REAL    NOT NULL DEFAULT 0,
    ac_hours             REAL    NOT NULL DEFAULT 0,
    heating_hours        REAL    NOT NULL DEFAULT 0,
    water_usage_liters   REAL    NOT NULL DEFAULT 0,
    red_meat_meals       INTEGER NOT NULL DEFAULT 0,
    poultry_meals        INTEGER NOT NULL DEFAULT 0,
    fish_meals           INTEGER NOT NULL DEFAULT 0,
    vegetarian_meals     INTEGER NOT NULL DEFAULT 0,
    vegan_meals          INTEGER NOT NULL DEFAULT 0,
    food_waste_kg        REAL    NOT NULL DEFAULT 0,
    grocery_bill         REAL    NOT NULL DEFAULT 0,
    waste_bag_count      INTEGER NOT NULL DEFAULT 0,
    general_waste_kg     REAL    NOT NULL DEFAULT 0,
    recycled_waste_kg    REAL    NOT NULL DEFAULT 0,
    recycled_today       INTEGER NOT NULL DEFAULT 0,
    composted_today      INTEGER NOT NULL DEFAULT 0,
    new_clothes_monthly  INTEGER NOT NULL DEFAULT 0,
    shower_frequency     INTEGER NOT NULL DEFAULT 0,
    tv_pc_hours          REAL    NOT NULL DEFAULT 0,
    internet_hours       REAL    NOT NULL DEFAULT 0,
    created_at           TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at           TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    UNIQUE (user_id, log_date)
);
"""

_DDL_PREDICTION_RECORDS = """
CREATE TABLE IF NOT EXISTS prediction_records (
    prediction_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          INTEGER NOT NULL,
    input_data       TEXT    NOT NULL,
    predicted_score  REAL    NOT NULL CHECK (predicted_score BETWEEN 0 AND 100),
    confidence       REAL,
    model_version    TEXT    NOT NULL,
    created_at       TEXT    NOT NULL
);
"""

_DDL_PREDICTION_RECORDS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_prediction_user_created
    ON prediction_records(user_id, created_at);
"""

# ── Ordered list of all DDL to apply ──────────────────────────────────────────

_ALL_DDL: list[str] = [
    _DDL_ECO_PROFILES,
    _DDL_DAILY_LOGS,
    _DDL_PREDICTION_RECORDS,
    _DDL_PREDICTION_RECORDS_INDEXES,
]

# Table names for introspection / tests
ALL_TABLE_NAMES = [
    "eco_profiles",
    "daily_logs",
    "prediction_records",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent: safe to call on an already-initialized database.
    Each statement uses ``IF NOT EXISTS`` guards.

    Args:
        conn: An open ``sqlite3.Connection``.
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return index names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
