"""
Export helpers for prediction history.

All functions write to disk and return the written ``Path``.  They accept
generic ``list[dict]`` data to stay decoupled from specific record shapes.

CSV exports are flat (no nested dicts) so they load directly in a
spreadsheet.  ``flatten_history_for_export()`` is the adapter: one row per
prediction, with the resolved features spread into ``f_<name>`` columns and
their provenance into ``src_<name>`` columns.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Sequence

from eco_scorer.models.prediction import PredictionRecord

_BASE_COLUMNS = [
    "prediction_id",
    "user_id",
    "created_at",
    "feature_date",
    "predicted_score",
    "confidence",
    "model_version",
]


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed JSON file (parent dirs created if missing)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def flatten_history_for_export(records: Sequence[PredictionRecord]) -> list[dict]:
    """Flatten prediction records into one flat row per prediction.

    Each row contains the base columns (``prediction_id``, ``user_id``,
    ``created_at``, ``feature_date``, ``predicted_score``, ``confidence``,
    ``model_version``), then ``f_<feature>`` and ``src_<feature>`` for every
    feature stored in ``input_data``.

    Args:
        records: Records in the order they should appear.

    Returns:
        List of flat row dicts.
    """
    rows: list[dict] = []
    for record in records:
        features = record.input_data.get("features", {})
        provenance = record.input_data.get("provenance", {})
        row = {
            "prediction_id":   record.prediction_id,
            "user_id":         record.user_id,
            "created_at":      record.created_at.isoformat(),
            "feature_date":    record.input_data.get("date", ""),
            "predicted_score": record.predicted_score,
            "confidence":      "" if record.confidence is None else record.confidence,
            "model_version":   record.model_version,
        }
        for name in sorted(features):
            row[f"f_{name}"] = features[name]
            row[f"src_{name}"] = provenance.get(name, "")
        rows.append(row)
    return rows


def history_columns(rows: list[dict]) -> list[str]:
    """Union of the columns in ``rows``: base columns first, then features sorted."""
    extra = sorted({key for row in rows for key in row} - set(_BASE_COLUMNS))
    return [*_BASE_COLUMNS, *extra]


def export_history(records: Sequence[PredictionRecord], path: Path) -> Path:
    """Export ``records`` to ``path``, choosing CSV or JSON from the suffix.

    Raises:
        ValueError: If the suffix is neither ``.csv`` nor ``.json``.
    """
    suffix = path.suffix.lower()
    if suffix == ".csv":
        rows = flatten_history_for_export(records)
        return export_to_csv(rows, path, fieldnames=history_columns(rows))
    if suffix == ".json":
        return export_to_json([r.model_dump(mode="json") for r in records], path)
    raise ValueError(f"Unsupported export format {path.suffix!r}; use .csv or .json.")
