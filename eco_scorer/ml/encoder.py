"""
Encode resolved features into the regressor's input vector.

Column rules, applied per entry of ``metadata.feature_names``:

  ``<numeric field>``         float value.
  ``<boolean field>``         1.0 / 0.0.
  ``<field>_<value>``         one-hot: 1.0 when the categorical ``field`` equals
                              ``value``, else 0.0.
  ``<categorical field>``     ordinal: the value's index in its vocabulary.
  anything else               0.0.

A vocabulary value with no ``<field>_<value>`` column is the model's dropped
baseline and encodes as all zeros across that field's columns.

The encoder does not validate.  If a categorical value outside its vocabulary
reaches it, that is a resolver bug and ``ValueError`` is raised rather than
silently mapping the value to the baseline.
"""

from __future__ import annotations

from typing import Any, Mapping

from eco_scorer.features.resolver import ResolvedFeatures
from eco_scorer.ml.model_store import ModelMetadata


def one_hot_columns(vocabularies: Mapping[str, list[str]]) -> dict[str, tuple[str, str]]:
    """Map every possible one-hot column name to its ``(field, value)`` pair."""
    return {
        f"{name}_{value}": (name, value)
        for name, values in vocabularies.items()
        for value in values
    }


def encode_features(
    resolved: ResolvedFeatures | Mapping[str, Any],
    metadata: ModelMetadata,
) -> list[float]:
    """Build the ordered input vector for one prediction.

    Args:
        resolved: Resolved feature set (or its ``values`` mapping).
        metadata: Metadata of the snapshot that will run inference.

    Returns:
        List of floats, one per ``metadata.feature_names`` entry.

    Raises:
        ValueError: If a categorical value is not in its vocabulary.
    """
    values = resolved.values if isinstance(resolved, ResolvedFeatures) else resolved
    vocabularies = metadata.categorical_vocabularies

    for name, allowed in vocabularies.items():
        if name in values and values[name] not in allowed:
            raise ValueError(
                f"Categorical {name}={values[name]!r} is outside the model vocabulary."
            )

    columns = one_hot_columns(vocabularies)
    vector: list[float] = []
    for column in metadata.feature_names:
        if column in vocabularies and column in values:
            vector.append(float(vocabularies[column].index(values[column])))
        elif column in values:
            vector.append(_to_float(values[column]))
        elif column in columns:
            field_name, category = columns[column]
            vector.append(1.0 if values.get(field_name) == category else 0.0)
        else:
            vector.append(0.0)
    return vector


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, str):
        raise ValueError(f"Cannot encode string value {value!r} as a numeric column.")
    return float(value)
