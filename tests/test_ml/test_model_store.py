"""
Tests for eco_scorer/ml/model_store.py.

What we test
------------
ModelMetadata:
  - Defaults: default vocabularies and band table.
  - Rejects empty / duplicate feature names, empty or duplicate vocabularies,
    a profile default missing from its vocabulary, and a non-tiling band table.
  - Categoricals the sidecar leaves out fall back to the default vocabularies.

build_snapshot() / save_model_artifact():
  - Round-trip with a real LightGBM booster (joblib + JSON sidecar).
  - Sidecar may omit feature_names / version (taken from the artifact).
  - Missing files raise FileNotFoundError.
  - Artifact/sidecar feature mismatch raises ValueError.

ModelStore:
  - snapshot() raises ServiceUnavailable before any load.
  - load() publishes on success and returns True.
  - Failed load returns False, records last_error, and keeps the previous snapshot.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import joblib
import numpy as np
import pytest

from eco_scorer.errors import ServiceUnavailable
from eco_scorer.ml.model_store import (
    DEFAULT_VOCABULARIES,
    ModelMetadata,
    ModelStore,
    build_snapshot,
    save_model_artifact,
    write_metadata,
)
from eco_scorer.scoring.categorizer import DEFAULT_BANDS, ScoreBand

FEATURES = ["car_km", "bike_km", "electricity_kwh", "diet_type_vegan"]


# ── Fixtures ──────────────────────────────────────────────────────────────────

def _train_booster():
    """Train a tiny LightGBM regressor on synthetic data."""
    import lightgbm as lgb

    rng = np.random.default_rng(0)
    X = rng.uniform(0, 30, size=(60, len(FEATURES)))
    X[:, 3] = rng.integers(0, 2, size=60)
    y = np.clip(80 - X[:, 0] + X[:, 1] - 0.5 * X[:, 2] + 10 * X[:, 3], 0, 100)
    params = {"objective": "regression", "min_data_in_leaf": 1, "verbose": -1}
    return lgb.train(params, lgb.Dataset(X, label=y, feature_name=FEATURES), num_boost_round=5)


@pytest.fixture
def artifact_paths(tmp_path: Path) -> tuple[Path, Path]:
    artifact = tmp_path / "models" / "eco.pkl"
    meta = tmp_path / "models" / "eco.json"
    save_model_artifact(_train_booster(), FEATURES, artifact, model_version="v2.3")
    write_metadata(ModelMetadata(version="v2.3", feature_names=FEATURES), meta)
    return artifact, meta


# ── ModelMetadata ─────────────────────────────────────────────────────────────

class TestModelMetadata:
    def test_defaults(self):
        meta = ModelMetadata(feature_names=["car_km"])
        assert meta.version == "v1.0"
        assert meta.categorical_vocabularies == DEFAULT_VOCABULARIES
        assert tuple(meta.score_bands) == DEFAULT_BANDS

    def test_missing_vocabularies_take_defaults(self):
        meta = ModelMetadata(
            feature_names=["car_km"],
            categorical_vocabularies={"diet_type": ["omnivore", "vegan"]},
        )
        assert meta.categorical_vocabularies["diet_type"] == ["omnivore", "vegan"]
        assert meta.categorical_vocabularies["season"] == DEFAULT_VOCABULARIES["season"]
        assert set(meta.categorical_vocabularies) == set(DEFAULT_VOCABULARIES)

    def test_rejects_empty_features(self):
        with pytest.raises(ValueError, match="feature_names"):
            ModelMetadata(feature_names=[])

    def test_rejects_duplicate_features(self):
        with pytest.raises(ValueError, match="unique"):
            ModelMetadata(feature_names=["car_km", "car_km"])

    def test_rejects_duplicate_vocabulary(self):
        with pytest.raises(ValueError, match="duplicates"):
            ModelMetadata(
                feature_names=["car_km"],
                categorical_vocabularies={"diet_type": ["omnivore", "omnivore"]},
            )

    def test_rejects_default_outside_vocabulary(self):
        with pytest.raises(ValueError, match="diet_type"):
            ModelMetadata(
                feature_names=["car_km"],
                categorical_vocabularies={"diet_type": ["vegan", "vegetarian"]},
            )

    def test_rejects_gapped_bands(self):
        with pytest.raises(ValueError):
            ModelMetadata(
                feature_names=["car_km"],
                score_bands=[ScoreBand(0, 40, "Low"), ScoreBand(50, 100, "High")],
            )

    def test_bands_from_json_dicts(self):
        meta = ModelMetadata.model_validate(
            {
                "feature_names": ["car_km"],
                "score_bands": [
                    {"min": 0, "max": 50, "label": "Low"},
                    {"min": 50, "max": 100, "label": "High"},
                ],
            }
        )
        assert [b.label for b in meta.score_bands] == ["Low", "High"]


# ── Artifact I/O ──────────────────────────────────────────────────────────────

class TestBuildSnapshot:
    def test_lightgbm_round_trip(self, artifact_paths):
        artifact, meta = artifact_paths
        snap = build_snapshot(artifact, meta)
        assert snap.metadata.version == "v2.3"
        assert snap.metadata.feature_names == FEATURES
        preds = snap.regressor.predict(np.zeros((1, len(FEATURES))))
        assert len(preds) == 1

    def test_sidecar_may_omit_features_and_version(self, tmp_path, artifact_paths):
        artifact, _ = artifact_paths
        bare_meta = tmp_path / "bare.json"
        bare_meta.write_text(json.dumps({"model_type": "lightgbm"}))
        snap = build_snapshot(artifact, bare_meta)
        assert snap.metadata.feature_names == FEATURES
        assert snap.metadata.version == "v2.3"

    def test_sidecar_may_omit_some_vocabularies(self, tmp_path, artifact_paths):
        artifact, _ = artifact_paths
        partial_meta = tmp_path / "partial.json"
        partial_meta.write_text(
            json.dumps({"categorical_vocabularies": {"season": ["winter", "spring", "summer", "fall"]}})
        )
        snap = build_snapshot(artifact, partial_meta)
        vocabularies = snap.metadata.categorical_vocabularies
        assert vocabularies["season"][0] == "winter"
        assert vocabularies["diet_type"] == DEFAULT_VOCABULARIES["diet_type"]

    def test_missing_artifact(self, tmp_path, artifact_paths):
        _, meta = artifact_paths
        with pytest.raises(FileNotFoundError):
            build_snapshot(tmp_path / "nope.pkl", meta)

    def test_missing_metadata(self, tmp_path, artifact_paths):
        artifact, _ = artifact_paths
        with pytest.raises(FileNotFoundError):
            build_snapshot(artifact, tmp_path / "nope.json")

    def test_feature_mismatch(self, tmp_path, artifact_paths):
        artifact, _ = artifact_paths
        other_meta = tmp_path / "other.json"
        write_metadata(ModelMetadata(feature_names=["car_km", "bus_km"]), other_meta)
        with pytest.raises(ValueError, match="do not match"):
            build_snapshot(artifact, other_meta)

    def test_not_an_artifact(self, tmp_path, artifact_paths):
        _, meta = artifact_paths
        junk = tmp_path / "junk.pkl"
        joblib.dump([1, 2, 3], junk)
        with pytest.raises(ValueError, match="not an eco-score model artifact"):
            build_snapshot(junk, meta)


# ── ModelStore ────────────────────────────────────────────────────────────────

class TestModelStore:
    def test_empty_store_unavailable(self):
        store = ModelStore()
        assert not store.is_loaded
        assert store.current() is None
        with pytest.raises(ServiceUnavailable):
            store.snapshot()

    def test_service_unavailable_is_retryable(self):
        with pytest.raises(ServiceUnavailable) as excinfo:
            ModelStore().snapshot()
        assert excinfo.value.retryable is True

    def test_load_publishes(self, artifact_paths):
        artifact, meta = artifact_paths
        store = ModelStore()
        assert asyncio.run(store.load(artifact, meta, timeout_s=30)) is True
        assert store.is_loaded
        assert store.snapshot().metadata.version == "v2.3"
        assert store.last_error is None

    def test_failed_load_leaves_store_empty(self, tmp_path):
        store = ModelStore()
        ok = asyncio.run(store.load(tmp_path / "missing.pkl", tmp_path / "missing.json"))
        assert ok is False
        assert "FileNotFoundError" in store.last_error
        with pytest.raises(ServiceUnavailable, match="missing.pkl"):
            store.snapshot()

    def test_failed_reload_keeps_previous(self, stub_snapshot, tmp_path):
        store = ModelStore()
        store.publish(stub_snapshot)
        ok = asyncio.run(store.load(tmp_path / "missing.pkl", tmp_path / "missing.json"))
        assert ok is False
        assert store.snapshot() is stub_snapshot
        assert store.last_error is not None

    def test_reader_keeps_its_snapshot_across_reload(self, stub_snapshot, artifact_paths):
        store = ModelStore()
        store.publish(stub_snapshot)
        held = store.snapshot()
        asyncio.run(store.load(*artifact_paths))
        assert held is stub_snapshot
        assert store.snapshot() is not stub_snapshot
