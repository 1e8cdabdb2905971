"""
Score prediction against a published model snapshot.

``ScorePredictor`` wraps one immutable ``ModelSnapshot``.  It never touches
the store, so a reload that happens mid-request does not affect a prediction
already in flight.  Inference is a single synchronous ``predict`` call on a
``(1, n)`` float64 matrix.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from eco_scorer.ml.model_store import ModelSnapshot
from eco_scorer.scoring.categorizer import SCORE_MAX, SCORE_MIN

logger = logging.getLogger(__name__)


def clamp_score(raw: float) -> float:
    """Clamp ``raw`` to ``[0, 100]`` and round to 2 decimal places."""
    return round(min(SCORE_MAX, max(SCORE_MIN, float(raw))), 2)


class ScorePredictor:
    """Runs the regressor of one snapshot."""

    def __init__(self, snapshot: ModelSnapshot) -> None:
        self.snapshot = snapshot

    @property
    def model_version(self) -> str:
        return self.snapshot.metadata.version

    def predict(self, vector: Sequence[float]) -> float:
        """Predict the eco score for one encoded feature vector.

        Args:
            vector: Output of ``encode_features`` for this snapshot.

        Returns:
            Score clamped to ``[0, 100]``, rounded to 2 dp.

        Raises:
            ValueError: If ``vector`` length does not match the model's features.
        """
        expected = len(self.snapshot.metadata.feature_names)
        if len(vector) != expected:
            raise ValueError(
                f"Feature vector has {len(vector)} values; model expects {expected}."
            )

        X = np.asarray(vector, dtype=np.float64).reshape(1, -1)
        raw = float(np.ravel(self.snapshot.regressor.predict(X))[0])
        score = clamp_score(raw)
        if score != round(raw, 2):
            logger.debug("Raw score %.4f clamped to %.2f.", raw, score)
        return score
