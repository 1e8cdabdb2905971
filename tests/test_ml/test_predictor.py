"""
Tests for eco_scorer/ml/predictor.py.

What we test
------------
  - clamp_score() clamps to [0, 100] and rounds to 2 dp.
  - ScorePredictor passes a (1, n) float64 matrix to the regressor.
  - Out-of-range regressor output is clamped.
  - A vector of the wrong length raises ValueError.
"""

from __future__ import annotations

import numpy as np
import pytest

from eco_scorer.ml.model_store import ModelSnapshot
from eco_scorer.ml.predictor import ScorePredictor, clamp_score


class _ConstantRegressor:
    def __init__(self, value: float) -> None:
        self.value = value

    def predict(self, X):
        return np.full(len(X), self.value)


@pytest.mark.parametrize(
    "raw, expected",
    [(-12.0, 0.0), (0.0, 0.0), (33.3333, 33.33), (55.5555, 55.56), (100.0, 100.0), (131.7, 100.0)],
)
def test_clamp_score(raw, expected):
    assert clamp_score(raw) == expected


def test_predict_shape_and_rounding(stub_snapshot, stub_regressor):
    n = len(stub_snapshot.metadata.feature_names)
    score = ScorePredictor(stub_snapshot).predict([1.0] * n)
    assert score == 72.5
    X = stub_regressor.calls[-1]
    assert X.shape == (1, n)
    assert X.dtype == np.float64


@pytest.mark.parametrize("raw, expected", [(-5.0, 0.0), (250.0, 100.0)])
def test_predict_clamps(stub_metadata, raw, expected):
    snap = ModelSnapshot(regressor=_ConstantRegressor(raw), metadata=stub_metadata)
    n = len(stub_metadata.feature_names)
    assert ScorePredictor(snap).predict([0.0] * n) == expected


def test_wrong_vector_length(stub_snapshot):
    with pytest.raises(ValueError, match="expects"):
        ScorePredictor(stub_snapshot).predict([1.0, 2.0])


def test_model_version(stub_snapshot):
    assert ScorePredictor(stub_snapshot).model_version == "test-1"
