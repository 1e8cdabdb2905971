"""
Prediction request, response, and history models.

``PredictionRequest`` is the inbound contract: any subset of the profile and
measurement fields, plus an optional date.  Numeric fields must be finite and
non-negative; categorical fields are free strings whose vocabulary check
happens in the resolver against the published model.

``PredictionRecord`` is the audit trail.  It is frozen and append-only: no
repository method updates or deletes one.  Trend and delta computations read
these records and nothing else.

``parse_request()`` turns a raw payload into a ``PredictionRequest``, mapping
pydantic errors onto the service's own ``ValidationError`` so callers see the
offending field name.
"""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from typing import Any, Mapping, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from eco_scorer.errors import ValidationError
from eco_scorer.features.registry import FeatureSource


class PredictionRequest(BaseModel):
    """Partial feature input for one prediction.

    ``None`` (or omission) means "not supplied"; the resolver then falls back
    to the daily log, the profile, or a hard default as appropriate.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    date: Optional[date_type] = None

    # Profile-backed
    household_size: Optional[int] = Field(default=None, ge=0)
    age_group: Optional[str] = None
    lifestyle_type: Optional[str] = None
    location_type: Optional[str] = None
    vehicle_type: Optional[str] = None
    car_fuel_type: Optional[str] = None
    diet_type: Optional[str] = None
    uses_solar_panels: Optional[bool] = None
    smart_thermostat: Optional[bool] = None
    renewable_energy_percent: Optional[float] = Field(default=None, ge=0, le=100)
    recycling_practiced: Optional[bool] = None
    composting_practiced: Optional[bool] = None
    waste_bag_size: Optional[str] = None
    social_activity: Optional[str] = None

    # Travel
    car_km: Optional[float] = Field(default=None, ge=0)
    bus_km: Optional[float] = Field(default=None, ge=0)
    train_metro_km: Optional[float] = Field(default=None, ge=0)
    bike_km: Optional[float] = Field(default=None, ge=0)
    walk_km: Optional[float] = Field(default=None, ge=0)

    # Energy
    electricity_kwh: Optional[float] = Field(default=None, ge=0)
    natural_gas_therms: Optional[float] = Field(default=None, ge=0)
    ac_hours: Optional[float] = Field(default=None, ge=0)
    heating_hours: Optional[float] = Field(default=None, ge=0)
    water_usage_liters: Optional[float] = Field(default=None, ge=0)

    # Food
    red_meat_meals: Optional[int] = Field(default=None, ge=0)
    poultry_meals: Optional[int] = Field(default=None, ge=0)
    fish_meals: Optional[int] = Field(default=None, ge=0)
    vegetarian_meals: Optional[int] = Field(default=None, ge=0)
    vegan_meals: Optional[int] = Field(default=None, ge=0)
    food_waste_kg: Optional[float] = Field(default=None, ge=0)
    grocery_bill: Optional[float] = Field(default=None, ge=0)

    # Waste
    waste_bag_count: Optional[int] = Field(default=None, ge=0)
    general_waste_kg: Optional[float] = Field(default=None, ge=0)
    recycled_waste_kg: Optional[float] = Field(default=None, ge=0)

    # Lifestyle
    new_clothes_monthly: Optional[int] = Field(default=None, ge=0)
    shower_frequency: Optional[int] = Field(default=None, ge=0)
    tv_pc_hours: Optional[float] = Field(default=None, ge=0)
    internet_hours: Optional[float] = Field(default=None, ge=0)

    def supplied(self) -> dict[str, Any]:
        """Return the feature fields explicitly set (non-None), excluding ``date``."""
        return {
            name: value
            for name, value in self.model_dump(exclude={"date"}).items()
            if value is not None
        }


def parse_request(payload: Mapping[str, Any] | PredictionRequest) -> PredictionRequest:
    """Build a ``PredictionRequest`` from a raw mapping.

    Raises:
        ValidationError: Naming the first offending field (negative quantity,
            malformed date, wrong type, or unknown field name).
    """
    if isinstance(payload, PredictionRequest):
        return payload
    try:
        return PredictionRequest.model_validate(dict(payload))
    except pydantic.ValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


class PredictionRecord(BaseModel):
    """One stored prediction, immutable once written.

    Attributes:
        prediction_id: Auto-assigned DB PK; ``None`` before insertion.
        user_id: Owning user.
        input_data: Serialized resolved features and their provenance:
            ``{"features": {...}, "provenance": {...}, "date": "YYYY-MM-DD"}``.
        predicted_score: Clamped score in [0, 100].
        confidence: Optional model confidence in [0, 1].
        model_version: Version string of the model that produced the score.
        created_at: UTC timestamp of the prediction.
    """

    model_config = ConfigDict(frozen=True)

    prediction_id: Optional[int] = None
    user_id: int
    input_data: dict[str, Any]
    predicted_score: float
    confidence: Optional[float] = None
    model_version: str
    created_at: datetime

    @field_validator("predicted_score")
    @classmethod
    def validate_score_range(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"predicted_score must be in [0, 100], got {v}.")
        return v

    @field_validator("confidence")
    @classmethod
    def validate_confidence_range(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 1.0:
            raise ValueError(f"confidence must be in [0.0, 1.0], got {v}.")
        return v


class PredictionResponse(BaseModel):
    """Outbound result of one prediction."""

    model_config = ConfigDict(frozen=True)

    predicted_score: float
    score_category: str
    recommendations: list[str]
    data_sources: dict[str, FeatureSource]
    previous_score: Optional[float] = None


class ScoreCategoryInfo(BaseModel):
    """One row of the score-category table exposed by model info."""

    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    label: str


class ModelInfo(BaseModel):
    """Model-info query response."""

    model_config = ConfigDict(frozen=True)

    model_loaded: bool
    model_version: Optional[str] = None
    model_type: Optional[str] = None
    features_count: int
    categorical_options: dict[str, list[str]]
    score_categories: list[ScoreCategoryInfo]


class TodaySummary(BaseModel):
    """Dashboard summary of today's daily log."""

    model_config = ConfigDict(frozen=True)

    total_distance: float
    meals_logged: int
    recycled: bool


class TrendPoint(BaseModel):
    """Average score for one calendar day that has at least one prediction."""

    model_config = ConfigDict(frozen=True)

    date: date_type
    avg_score: float


class DashboardPayload(BaseModel):
    """Dashboard query response."""

    model_config = ConfigDict(frozen=True)

    profile_complete: bool
    latest_score: Optional[float] = None
    today_summary: Optional[TodaySummary] = None
    week_trend: list[TrendPoint] = []
    total_predictions: int = 0
    trips_today: int = 0
