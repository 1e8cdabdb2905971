"""
Feature resolution: partial request + profile + daily log → complete feature set.

Precedence
----------
Profile-backed fields:
    request value  →  profile value  →  hard default
    provenance:       "request"          "profile"         "default"

Measurement fields:
    request value  →  same-day daily log value  →  0
    provenance:       "request"                    "request"  /  "default"

The daily log is the user's own entry for the day, so its values carry the
same ``request`` tag as values typed into the prediction call.  The profile
is never consulted for measurements.

Computed fields are derived after both groups are resolved and are always
tagged ``computed``.

Validation
----------
``resolve_features()`` is the single validation point before inference.  It
raises ``ValidationError`` (carrying the field name) for:

  - a categorical value outside the published model vocabulary, whether it
    came from the request, the profile, a hard default, or a computed field;
  - a categorical with no published vocabulary;
  - a negative or non-finite numeric quantity, from any source;
  - ``renewable_energy_percent`` above 100;
  - a malformed request date.

The function is pure: no I/O, no clock reads.  The fallback date is the
caller-supplied ``today``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from eco_scorer.errors import ValidationError
from eco_scorer.features.registry import (
    CAR_CO2_PER_KM,
    ELECTRICITY_CO2_PER_KWH,
    FIELD_REGISTRY,
    MEASUREMENT_FIELDS,
    PROFILE_FIELDS,
    FeatureSource,
    get_spec,
)
from eco_scorer.models.daily_log import DailyLog
from eco_scorer.models.prediction import PredictionRequest, parse_request
from eco_scorer.models.profile import EcoProfile
from eco_scorer.utils.time_utils import is_weekend, season_for, weekday_name

logger = logging.getLogger(__name__)

FeatureValue = float | int | bool | str


@dataclass(frozen=True)
class ResolvedFeatures:
    """A complete, validated feature set ready for encoding.

    Attributes:
        values: One entry per registered feature name.
        provenance: Source tag for every key in ``values``.
        feature_date: The date the features describe.
    """

    values: dict[str, FeatureValue]
    provenance: dict[str, FeatureSource]
    feature_date: date

    def to_input_data(self) -> dict[str, Any]:
        """Serialize for storage in a ``PredictionRecord``."""
        return {
            "date": self.feature_date.isoformat(),
            "features": dict(self.values),
            "provenance": {name: str(src) for name, src in self.provenance.items()},
        }


# ── Public API ────────────────────────────────────────────────────────────────

def resolve_features(
    request: PredictionRequest | Mapping[str, Any],
    profile: Optional[EcoProfile],
    daily_log: Optional[DailyLog],
    vocabularies: Mapping[str, Sequence[str]],
    *,
    today: date,
) -> ResolvedFeatures:
    """Merge request, profile and daily log into a complete feature set.

    Args:
        request: Parsed request, or a raw mapping to be parsed.
        profile: The user's profile, or ``None`` if the profile is incomplete.
        daily_log: The user's log for the feature date, or ``None``.  A log
            for any other date is ignored.
        vocabularies: Allowed values per categorical feature, taken from the
            published model metadata.
        today: Date to use when the request carries none.

    Returns:
        ``ResolvedFeatures`` covering every registered field.

    Raises:
        ValidationError: On any invalid or out-of-vocabulary value.
    """
    parsed = parse_request(request)
    feature_date = parsed.date or today
    supplied = parsed.supplied()

    if daily_log is not None and daily_log.log_date != feature_date:
        logger.debug(
            "Ignoring daily log for %s (features are for %s).",
            daily_log.log_date, feature_date,
        )
        daily_log = None

    values: dict[str, FeatureValue] = {}
    provenance: dict[str, FeatureSource] = {}

    for name in PROFILE_FIELDS:
        stored = getattr(profile, name) if profile is not None else None
        if name in supplied:
            values[name], provenance[name] = supplied[name], FeatureSource.REQUEST
        elif stored is not None:
            values[name], provenance[name] = stored, FeatureSource.PROFILE
        else:
            values[name], provenance[name] = get_spec(name).default, FeatureSource.DEFAULT

    for name in MEASUREMENT_FIELDS:
        if name in supplied:
            values[name], provenance[name] = supplied[name], FeatureSource.REQUEST
        elif daily_log is not None:
            values[name], provenance[name] = getattr(daily_log, name), FeatureSource.REQUEST
        else:
            values[name], provenance[name] = get_spec(name).default, FeatureSource.DEFAULT

    for name, value in _compute_derived(values, feature_date).items():
        values[name], provenance[name] = value, FeatureSource.COMPUTED

    _validate(values, vocabularies)
    return ResolvedFeatures(values=values, provenance=provenance, feature_date=feature_date)


# ── Derived features ──────────────────────────────────────────────────────────

def _compute_derived(values: Mapping[str, FeatureValue], day: date) -> dict[str, FeatureValue]:
    car = float(values["car_km"])
    bus = float(values["bus_km"])
    train = float(values["train_metro_km"])
    bike = float(values["bike_km"])
    walk = float(values["walk_km"])
    total_distance = car + bus + train + bike + walk

    if total_distance > 0:
        sustainable_ratio = (bike + walk + bus + train) / total_distance
        public_usage = (bus + train) / total_distance
    else:
        sustainable_ratio = 1.0
        public_usage = 0.0

    energy_efficiency = (
        float(values["renewable_energy_percent"]) / 100.0
        + (0.3 if values["uses_solar_panels"] else 0.0)
        + (0.2 if values["smart_thermostat"] else 0.0)
    ) / 1.5

    general = float(values["general_waste_kg"])
    recycled = float(values["recycled_waste_kg"])
    total_waste = general + recycled
    recycling_rate = recycled / total_waste if total_waste > 0 else 0.0

    household = max(int(values["household_size"]), 1)
    per_capita_co2 = (
        car * CAR_CO2_PER_KM + float(values["electricity_kwh"]) * ELECTRICITY_CO2_PER_KWH
    ) / household

    return {
        "total_distance": total_distance,
        "sustainable_transport_ratio": sustainable_ratio,
        "public_transport_usage": public_usage,
        "energy_efficiency": energy_efficiency,
        "recycling_rate": recycling_rate,
        "per_capita_co2": per_capita_co2,
        "is_weekend": is_weekend(day),
        "month": day.month,
        "season": season_for(day),
        "day_of_week": weekday_name(day),
    }


# ── Validation ────────────────────────────────────────────────────────────────

def _validate(
    values: Mapping[str, FeatureValue],
    vocabularies: Mapping[str, Sequence[str]],
) -> None:
    for spec in FIELD_REGISTRY:
        value = values[spec.name]
        if spec.kind == "categorical":
            allowed = vocabularies.get(spec.name)
            if allowed is None:
                raise ValidationError(spec.name, "no vocabulary is published for this field", value)
            if value not in allowed:
                raise ValidationError(
                    spec.name,
                    f"{value!r} is not one of {list(allowed)}",
                    value,
                )
        elif spec.kind == "numeric":
            if not math.isfinite(value):
                raise ValidationError(spec.name, f"must be finite, got {value}", value)
            if value < 0:
                raise ValidationError(spec.name, f"must be non-negative, got {value}", value)
            if spec.max_value is not None and value > spec.max_value:
                raise ValidationError(
                    spec.name, f"must be <= {spec.max_value:g}, got {value}", value
                )
