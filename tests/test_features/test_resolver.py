"""
Tests for eco_scorer/features/resolver.py.

What we test
------------
Precedence / provenance:
  - Request value wins over profile and default, tagged "request".
  - Absent request value + profile value -> profile value, tagged "profile".
  - No request or profile value -> hard default, tagged "default".
  - Measurements fall back to the same-day daily log ("request"), then 0.
  - Measurements never fall back to the profile.
  - A daily log for a different date is ignored.
  - Computed fields are tagged "computed".

Derived features:
  - total_distance, transport ratios (incl. the no-travel case), energy
    efficiency, recycling rate, per-capita CO2, calendar features.

Validation:
  - Out-of-vocabulary categorical (request or profile) -> ValidationError.
  - Negative or infinite quantity, renewable % > 100, malformed date -> ValidationError.
  - A categorical with no vocabulary -> ValidationError.

Purity:
  - Identical inputs give identical outputs; "today" comes from the argument.
"""

from __future__ import annotations

from datetime import date

import pytest

from eco_scorer.errors import ValidationError
from eco_scorer.features.registry import (
    COMPUTED_FIELDS,
    FIELD_REGISTRY,
    MEASUREMENT_FIELDS,
    FeatureSource,
)
from eco_scorer.features.resolver import resolve_features
from eco_scorer.ml.model_store import DEFAULT_VOCABULARIES
from eco_scorer.models.daily_log import DailyLog
from eco_scorer.models.prediction import PredictionRequest
from eco_scorer.models.profile import EcoProfile

TODAY = date(2025, 3, 12)   # Wednesday, spring
VOCAB = DEFAULT_VOCABULARIES


def _resolve(request=None, profile=None, log=None, today=TODAY):
    return resolve_features(request or {}, profile, log, VOCAB, today=today)


# ── Precedence ────────────────────────────────────────────────────────────────

class TestPrecedence:
    def test_documented_example(self):
        resolved = _resolve(
            {"car_km": 20, "diet_type": "vegan", "household_size": None},
            EcoProfile(user_id=1, household_size=3, diet_type="omnivore"),
        )
        assert resolved.values["household_size"] == 3
        assert resolved.provenance["household_size"] == FeatureSource.PROFILE
        assert resolved.values["diet_type"] == "vegan"
        assert resolved.provenance["diet_type"] == FeatureSource.REQUEST
        assert resolved.values["car_km"] == 20
        assert resolved.provenance["car_km"] == FeatureSource.REQUEST

    def test_request_wins_even_when_equal_to_default(self):
        resolved = _resolve({"diet_type": "omnivore"}, EcoProfile(user_id=1, diet_type="vegan"))
        assert resolved.values["diet_type"] == "omnivore"
        assert resolved.provenance["diet_type"] == FeatureSource.REQUEST

    def test_defaults_without_profile(self):
        resolved = _resolve()
        assert resolved.values["household_size"] == 1
        assert resolved.values["diet_type"] == "omnivore"
        assert resolved.values["vehicle_type"] == "none"
        assert resolved.values["uses_solar_panels"] is False
        assert resolved.provenance["diet_type"] == FeatureSource.DEFAULT

    def test_false_profile_flag_is_a_profile_value(self):
        resolved = _resolve(profile=EcoProfile(user_id=1, recycling_practiced=False))
        assert resolved.values["recycling_practiced"] is False
        assert resolved.provenance["recycling_practiced"] == FeatureSource.PROFILE

    def test_measurements_default_to_zero(self):
        resolved = _resolve(profile=EcoProfile(user_id=1, household_size=4))
        for name in MEASUREMENT_FIELDS:
            assert resolved.values[name] == 0
            assert resolved.provenance[name] == FeatureSource.DEFAULT

    def test_measurements_use_same_day_log(self):
        log = DailyLog(user_id=1, log_date=TODAY, car_km=8.0, red_meat_meals=2)
        resolved = _resolve({"car_km": 3.0}, log=log)
        assert resolved.values["car_km"] == 3.0
        assert resolved.values["red_meat_meals"] == 2
        assert resolved.provenance["red_meat_meals"] == FeatureSource.REQUEST

    def test_log_for_other_day_is_ignored(self):
        log = DailyLog(user_id=1, log_date=date(2025, 3, 11), car_km=8.0)
        resolved = _resolve(log=log)
        assert resolved.values["car_km"] == 0
        assert resolved.provenance["car_km"] == FeatureSource.DEFAULT

    def test_request_date_selects_log_day(self):
        log = DailyLog(user_id=1, log_date=date(2025, 3, 10), bike_km=5.0)
        resolved = _resolve({"date": "2025-03-10"}, log=log)
        assert resolved.feature_date == date(2025, 3, 10)
        assert resolved.values["bike_km"] == 5.0

    def test_every_field_has_provenance(self):
        resolved = _resolve()
        assert set(resolved.values) == {spec.name for spec in FIELD_REGISTRY}
        assert set(resolved.provenance) == set(resolved.values)
        for name in COMPUTED_FIELDS:
            assert resolved.provenance[name] == FeatureSource.COMPUTED


# ── Derived features ──────────────────────────────────────────────────────────

class TestDerived:
    def test_transport_features(self):
        resolved = _resolve(
            {"car_km": 10, "bus_km": 5, "train_metro_km": 5, "bike_km": 15, "walk_km": 5}
        )
        v = resolved.values
        assert v["total_distance"] == pytest.approx(40.0)
        assert v["sustainable_transport_ratio"] == pytest.approx(30 / 40)
        assert v["public_transport_usage"] == pytest.approx(10 / 40)

    def test_no_travel_ratios(self):
        v = _resolve().values
        assert v["total_distance"] == 0.0
        assert v["sustainable_transport_ratio"] == 1.0
        assert v["public_transport_usage"] == 0.0

    def test_energy_efficiency(self):
        v = _resolve(
            {"renewable_energy_percent": 60, "uses_solar_panels": True, "smart_thermostat": True}
        ).values
        assert v["energy_efficiency"] == pytest.approx((0.6 + 0.3 + 0.2) / 1.5)

    def test_recycling_rate(self):
        v = _resolve({"general_waste_kg": 3, "recycled_waste_kg": 1}).values
        assert v["recycling_rate"] == pytest.approx(0.25)
        assert _resolve().values["recycling_rate"] == 0.0

    def test_per_capita_co2_uses_household(self):
        v = _resolve({"car_km": 10, "electricity_kwh": 10, "household_size": 2}).values
        assert v["per_capita_co2"] == pytest.approx((10 * 0.21 + 10 * 0.5) / 2)

    def test_per_capita_co2_zero_household(self):
        v = _resolve({"car_km": 10, "household_size": 0}).values
        assert v["per_capita_co2"] == pytest.approx(2.1)

    def test_calendar_features(self):
        v = _resolve({"date": date(2025, 7, 5)}).values   # Saturday
        assert v["is_weekend"] is True
        assert v["month"] == 7
        assert v["season"] == "summer"
        assert v["day_of_week"] == "Saturday"

    def test_today_argument_is_default_date(self):
        resolved = _resolve(today=date(2024, 12, 25))
        assert resolved.feature_date == date(2024, 12, 25)
        assert resolved.values["season"] == "winter"


# ── Validation ────────────────────────────────────────────────────────────────

class TestValidation:
    def test_unknown_categorical_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            _resolve({"diet_type": "carnivore-extreme"})
        assert excinfo.value.field == "diet_type"
        assert excinfo.value.value == "carnivore-extreme"

    def test_categoricals_are_exact_match(self):
        with pytest.raises(ValidationError):
            _resolve({"diet_type": "Vegan"})

    def test_unknown_profile_categorical_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            _resolve(profile=EcoProfile(user_id=1, location_type="moon-base"))
        assert excinfo.value.field == "location_type"

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            _resolve({"car_km": -1})
        assert excinfo.value.field == "car_km"

    def test_infinite_quantity_rejected(self):
        request = PredictionRequest.model_construct(car_km=float("inf"))
        with pytest.raises(ValidationError) as excinfo:
            _resolve(request)
        assert excinfo.value.field == "car_km"

    def test_renewable_over_100_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            _resolve({"renewable_energy_percent": 101})
        assert excinfo.value.field == "renewable_energy_percent"

    def test_malformed_date_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            _resolve({"date": "2025-13-45"})
        assert excinfo.value.field == "date"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            _resolve({"jetpack_km": 3})
        assert excinfo.value.field == "jetpack_km"

    def test_field_without_vocabulary_rejected(self):
        vocab = {k: v for k, v in VOCAB.items() if k != "social_activity"}
        with pytest.raises(ValidationError) as excinfo:
            resolve_features({"social_activity": "daily"}, None, None, vocab, today=TODAY)
        assert excinfo.value.field == "social_activity"

    def test_default_without_vocabulary_rejected(self):
        vocab = {k: v for k, v in VOCAB.items() if k != "diet_type"}
        with pytest.raises(ValidationError) as excinfo:
            resolve_features({}, None, None, vocab, today=TODAY)
        assert excinfo.value.field == "diet_type"


# ── Purity ────────────────────────────────────────────────────────────────────

def test_resolution_is_deterministic():
    profile = EcoProfile(user_id=1, household_size=2, diet_type="vegetarian")
    log = DailyLog(user_id=1, log_date=TODAY, car_km=4.0)
    request = {"bike_km": 3.0, "uses_solar_panels": True}

    first = resolve_features(request, profile, log, VOCAB, today=TODAY)
    second = resolve_features(request, profile, log, VOCAB, today=TODAY)
    assert first == second


def test_input_data_serialization():
    data = _resolve({"car_km": 5}).to_input_data()
    assert data["date"] == "2025-03-12"
    assert data["features"]["car_km"] == 5
    assert data["provenance"]["car_km"] == "request"
    assert data["provenance"]["total_distance"] == "computed"
