"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      committed static defaults
  2. ``config/local.toml``        optional local overrides (gitignored)
  3. ``.env``                     local secrets and env overrides (gitignored)
  4. Environment variables        ``ECO_SCORER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The service and every CLI command receive an ``AppConfig`` instance;
never raw dicts or individual env var lookups scattered through the codebase.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/eco_scorer.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class ModelConfig(BaseModel):
    """Location of the pre-trained eco-score regressor and its metadata sidecar."""

    model_config = ConfigDict(frozen=True)

    artifact_path: str = "models/eco_score_model.pkl"
    metadata_path: str = "models/eco_score_model.json"
    load_timeout_s: float = 60.0

    @field_validator("load_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"load_timeout_s must be positive, got {v}.")
        return v


class RecommendationConfig(BaseModel):
    """Recommendation list settings."""

    model_config = ConfigDict(frozen=True)

    max_count: int = 5

    @field_validator("max_count")
    @classmethod
    def validate_max_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_count must be >= 1, got {v}.")
        return v


class DashboardConfig(BaseModel):
    """Dashboard aggregation window."""

    model_config = ConfigDict(frozen=True)

    trend_days: int = 7

    @field_validator("trend_days")
    @classmethod
    def validate_trend_days(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"trend_days must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/eco_scorer.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration.

    It is constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    model: ModelConfig = ModelConfig()
    recommendations: RecommendationConfig = RecommendationConfig()
    dashboard: DashboardConfig = DashboardConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply ECO_SCORER_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply ECO_SCORER_* env vars to the raw config dict.

    Supported overrides:
      ECO_SCORER_DB_PATH     → raw["database"]["db_path"]
      ECO_SCORER_MODEL_PATH  → raw["model"]["artifact_path"]
      ECO_SCORER_LOG_LEVEL   → raw["logging"]["level"]
      ECO_SCORER_DEBUG       → raw["debug"]
    """
    if db_path := os.environ.get("ECO_SCORER_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if model_path := os.environ.get("ECO_SCORER_MODEL_PATH"):
        raw.setdefault("model", {})["artifact_path"] = model_path

    if log_level := os.environ.get("ECO_SCORER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("ECO_SCORER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        model=ModelConfig(**raw.get("model", {})),
        recommendations=RecommendationConfig(**raw.get("recommendations", {})),
        dashboard=DashboardConfig(**raw.get("dashboard", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
