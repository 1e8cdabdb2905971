"""
Score categorization: map a clamped eco score to a named band.

Band convention
---------------
Bands are half-open ``[min, next.min)``; the last band is closed at 100, so a
score of exactly 100 lands in the top band and a boundary value always
belongs to the band that starts there:

    [0, 20)   Needs Improvement
    [20, 40)  Below Average
    [40, 60)  Average
    [60, 80)  Good
    [80, 100] Excellent

A band table is only usable if it tiles ``[0, 100]`` exactly; see
``validate_bands()``.  Model metadata carries its own table, which is checked
with the same function when the model is loaded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

SCORE_MIN = 0.0
SCORE_MAX = 100.0


@dataclass(frozen=True)
class ScoreBand:
    """A labelled score range.

    Attributes:
        min: Inclusive lower bound.
        max: Exclusive upper bound (inclusive for the last band).
        label: Human-readable category name.
    """

    min: float
    max: float
    label: str


DEFAULT_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(0, 20, "Needs Improvement"),
    ScoreBand(20, 40, "Below Average"),
    ScoreBand(40, 60, "Average"),
    ScoreBand(60, 80, "Good"),
    ScoreBand(80, 100, "Excellent"),
)


def validate_bands(bands: Sequence[ScoreBand]) -> None:
    """Check that ``bands`` tile ``[0, 100]`` with no gaps or overlaps.

    Args:
        bands: Bands in ascending order.

    Raises:
        ValueError: If the table is empty, does not start at 0 or end at 100,
            contains an empty band, or has a gap/overlap between neighbours.
    """
    if not bands:
        raise ValueError("Score band table must not be empty.")
    if bands[0].min != SCORE_MIN:
        raise ValueError(f"First band must start at 0, got {bands[0].min}.")
    if bands[-1].max != SCORE_MAX:
        raise ValueError(f"Last band must end at 100, got {bands[-1].max}.")

    for band in bands:
        if not band.min < band.max:
            raise ValueError(
                f"Band {band.label!r} has min {band.min} >= max {band.max}."
            )
    for current, following in zip(bands, bands[1:]):
        if current.max != following.min:
            raise ValueError(
                f"Band {current.label!r} ends at {current.max} but "
                f"{following.label!r} starts at {following.min}."
            )


def categorize(score: float, bands: Sequence[ScoreBand] = DEFAULT_BANDS) -> str:
    """Return the label of the band containing ``score``.

    Raises:
        ValueError: If ``score`` is outside ``[0, 100]``.
    """
    if not SCORE_MIN <= score <= SCORE_MAX:
        raise ValueError(f"Score must be in [0, 100], got {score}.")

    for band in bands[:-1]:
        if band.min <= score < band.max:
            return band.label
    return bands[-1].label
