"""
Model store: loads the eco-score regressor and publishes it to readers.

Artifact layout
---------------
A model lives in two files:

  ``*.pkl``   joblib pickle with keys ``regressor`` (any object exposing
              ``predict(X)``), ``feature_names`` and ``model_version``.
  ``*.json``  metadata sidecar: ``feature_names``, ``categorical_vocabularies``,
              ``score_bands``, ``version``, ``model_type``.  Missing keys fall
              back to the artifact's own values and the module defaults.

Publication
-----------
``ModelStore`` holds at most one ``ModelSnapshot``.  ``load()`` builds a new
snapshot in a worker thread and then swaps the reference in one assignment,
so readers either see the previous snapshot or the new one, never a partial
state.  Readers call ``snapshot()`` once per request and keep the local
reference for the whole request.

A failed load leaves the slot as it was (empty, or the previous snapshot)
and records the error for ``last_error``.  Until a load succeeds,
``snapshot()`` raises ``ServiceUnavailable``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from eco_scorer.errors import ServiceUnavailable
from eco_scorer.features.registry import CATEGORICAL_FIELDS, get_spec
from eco_scorer.scoring.categorizer import DEFAULT_BANDS, ScoreBand, validate_bands
from eco_scorer.utils.time_utils import WEEKDAY_NAMES, utcnow

logger = logging.getLogger(__name__)

DEFAULT_MODEL_VERSION = "v1.0"

DEFAULT_VOCABULARIES: dict[str, list[str]] = {
    "age_group":       ["18-25", "26-35", "36-50", "50+"],
    "lifestyle_type":  ["office_worker", "remote_worker", "retired", "self_employed", "student"],
    "location_type":   ["rural", "suburban", "urban"],
    "vehicle_type":    ["none", "petrol", "diesel", "hybrid", "electric", "lpg"],
    "car_fuel_type":   ["none", "petrol", "diesel", "hybrid", "electric", "lpg"],
    "diet_type":       ["omnivore", "vegetarian", "vegan", "pescatarian"],
    "waste_bag_size":  ["small", "medium", "large"],
    "social_activity": ["rarely", "sometimes", "often"],
    "season":          ["spring", "summer", "fall", "winter"],
    "day_of_week":     list(WEEKDAY_NAMES),
}


class ModelMetadata(BaseModel):
    """Immutable description of a published model's inputs and outputs.

    Attributes:
        version: Model version string recorded on every prediction.
        model_type: Regressor family, for display only.
        feature_names: Ordered column names the regressor expects.
        categorical_vocabularies: Allowed values per categorical feature.
        score_bands: Band table used to categorize this model's scores.
    """

    model_config = ConfigDict(frozen=True)

    version: str = DEFAULT_MODEL_VERSION
    model_type: str = "lightgbm"
    feature_names: list[str]
    categorical_vocabularies: dict[str, list[str]] = dict(DEFAULT_VOCABULARIES)
    score_bands: list[ScoreBand] = list(DEFAULT_BANDS)

    @field_validator("categorical_vocabularies")
    @classmethod
    def fill_missing_vocabularies(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        """Categoricals the sidecar leaves out take their default vocabulary."""
        merged = {name: list(values) for name, values in DEFAULT_VOCABULARIES.items()}
        merged.update(v)
        return merged

    @model_validator(mode="after")
    def validate_consistency(self) -> "ModelMetadata":
        if not self.feature_names:
            raise ValueError("feature_names must not be empty.")
        if len(set(self.feature_names)) != len(self.feature_names):
            raise ValueError("feature_names must be unique.")

        for name, values in self.categorical_vocabularies.items():
            if not values:
                raise ValueError(f"Vocabulary for {name!r} must not be empty.")
            if len(set(values)) != len(values):
                raise ValueError(f"Vocabulary for {name!r} contains duplicates.")

        for name in CATEGORICAL_FIELDS:
            allowed = self.categorical_vocabularies.get(name)
            if allowed is None:
                raise ValueError(f"No vocabulary for categorical feature {name!r}.")
            spec = get_spec(name)
            # Profile hard defaults must be in-vocabulary.
            if spec.group == "profile" and spec.default not in allowed:
                raise ValueError(
                    f"Default {spec.default!r} for {name!r} is missing from its vocabulary."
                )

        validate_bands(self.score_bands)
        return self


@dataclass(frozen=True)
class ModelSnapshot:
    """A loaded regressor together with its metadata.

    Never mutated after construction; a reload publishes a new snapshot.
    """

    regressor: Any
    metadata: ModelMetadata
    artifact_path: Optional[Path] = None
    loaded_at: datetime = field(default_factory=utcnow)


# ── Artifact I/O ──────────────────────────────────────────────────────────────

def save_model_artifact(
    regressor: Any,
    feature_names: list[str],
    artifact_path: Path,
    model_version: str = DEFAULT_MODEL_VERSION,
) -> None:
    """Serialize a regressor to a joblib pickle in the layout ``build_snapshot`` reads."""
    import joblib

    artifact_path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(
        {
            "regressor":     regressor,
            "feature_names": list(feature_names),
            "model_version": model_version,
        },
        artifact_path,
    )
    logger.info("Model artifact saved: %s", artifact_path)


def write_metadata(metadata: ModelMetadata, meta_path: Path) -> None:
    """Write ``metadata`` as a JSON sidecar."""
    meta_path.parent.mkdir(parents=True, exist_ok=True)
    meta_path.write_text(json.dumps(metadata.model_dump(mode="json"), indent=2))
    logger.debug("Model metadata written: %s", meta_path)


def build_snapshot(artifact_path: Path, metadata_path: Path) -> ModelSnapshot:
    """Load the artifact and sidecar from disk and validate them together.

    Blocking; ``ModelStore.load()`` runs this in a worker thread.

    Raises:
        FileNotFoundError: If either file is missing.
        ValueError: If the artifact is malformed, the metadata is invalid,
            or the two disagree on ``feature_names``.
    """
    import joblib

    if not artifact_path.exists():
        raise FileNotFoundError(f"Model artifact not found: {artifact_path}")
    if not metadata_path.exists():
        raise FileNotFoundError(f"Model metadata not found: {metadata_path}")

    state = joblib.load(artifact_path)
    if not isinstance(state, dict) or "regressor" not in state:
        raise ValueError(f"{artifact_path} is not an eco-score model artifact.")
    regressor = state["regressor"]
    if not callable(getattr(regressor, "predict", None)):
        raise ValueError(f"Regressor in {artifact_path} has no predict() method.")

    raw_meta: dict[str, Any] = json.loads(metadata_path.read_text())
    raw_meta.setdefault("feature_names", state.get("feature_names") or [])
    raw_meta.setdefault("version", state.get("model_version", DEFAULT_MODEL_VERSION))
    metadata = ModelMetadata.model_validate(raw_meta)

    artifact_features = state.get("feature_names")
    if artifact_features and list(artifact_features) != metadata.feature_names:
        raise ValueError(
            "feature_names in the metadata sidecar do not match the model artifact."
        )

    logger.info(
        "Model artifact loaded: %s (version=%s, features=%d)",
        artifact_path, metadata.version, len(metadata.feature_names),
    )
    return ModelSnapshot(regressor=regressor, metadata=metadata, artifact_path=artifact_path)


# ── Store ─────────────────────────────────────────────────────────────────────

class ModelStore:
    """Single-writer, many-reader holder of the current ``ModelSnapshot``."""

    def __init__(self) -> None:
        self._snapshot: Optional[ModelSnapshot] = None
        self._last_error: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def last_error(self) -> Optional[str]:
        """Message of the most recent failed load, cleared on success."""
        return self._last_error

    def current(self) -> Optional[ModelSnapshot]:
        """Return the published snapshot, or ``None`` if nothing is loaded."""
        return self._snapshot

    def snapshot(self) -> ModelSnapshot:
        """Return the published snapshot.

        Raises:
            ServiceUnavailable: If no model has been loaded successfully.
        """
        snap = self._snapshot
        if snap is None:
            detail = f" Last load error: {self._last_error}" if self._last_error else ""
            raise ServiceUnavailable(f"Eco-score model is not loaded.{detail}")
        return snap

    def publish(self, snapshot: ModelSnapshot) -> None:
        """Atomically replace the current snapshot."""
        self._snapshot = snapshot
        self._last_error = None
        logger.info("Published model %s.", snapshot.metadata.version)

    async def load(
        self,
        artifact_path: Path | str,
        metadata_path: Path | str,
        timeout_s: Optional[float] = None,
    ) -> bool:
        """Build a snapshot off the event loop and publish it on success.

        Args:
            artifact_path: joblib artifact path.
            metadata_path: JSON sidecar path.
            timeout_s: Give up after this many seconds, if set.

        Returns:
            True if a new snapshot was published, False if loading failed.
        """
        pending = asyncio.to_thread(build_snapshot, Path(artifact_path), Path(metadata_path))
        try:
            if timeout_s is not None:
                snap = await asyncio.wait_for(pending, timeout=timeout_s)
            else:
                snap = await pending
        except Exception as exc:
            self._last_error = f"{type(exc).__name__}: {exc}"
            logger.error("Model load failed for %s: %s", artifact_path, self._last_error)
            return False

        self.publish(snap)
        return True
