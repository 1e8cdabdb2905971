"""
Daily activity log model.

``DailyLog`` is the day-scoped record of measured or entered activity.  There
is at most one row per (``user_id``, ``log_date``); writes are upserts keyed on
that pair, so the log is overwritten as the day's data arrives and is never
deleted.

The log only references its owner by ``user_id``; it carries no link to a
profile, trips, or predictions.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from eco_scorer.features.registry import MEAL_FIELDS, MEASUREMENT_FIELDS, TRAVEL_FIELDS


class DailyLog(BaseModel):
    """One user's activity figures for one calendar date.

    Every measurement defaults to 0 and must be finite and non-negative;
    unknown keys are rejected rather than dropped.  Field names
    match the measurement names in ``features.registry`` so a log can stand
    in for missing request values during resolution.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    log_id: Optional[int] = None
    user_id: int
    log_date: date

    # Travel
    car_km: float = 0.0
    bus_km: float = 0.0
    train_metro_km: float = 0.0
    bike_km: float = 0.0
    walk_km: float = 0.0

    # Energy
    electricity_kwh: float = 0.0
    natural_gas_therms: float = 0.0
    ac_hours: float = 0.0
    heating_hours: float = 0.0
    water_usage_liters: float = 0.0

    # Food
    red_meat_meals: int = 0
    poultry_meals: int = 0
    fish_meals: int = 0
    vegetarian_meals: int = 0
    vegan_meals: int = 0
    food_waste_kg: float = 0.0
    grocery_bill: float = 0.0

    # Waste
    waste_bag_count: int = 0
    general_waste_kg: float = 0.0
    recycled_waste_kg: float = 0.0
    recycled_today: bool = False
    composted_today: bool = False

    # Lifestyle
    new_clothes_monthly: int = 0
    shower_frequency: int = 0
    tv_pc_hours: float = 0.0
    internet_hours: float = 0.0

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(*MEASUREMENT_FIELDS)
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"must be non-negative, got {v}.")
        return v

    @property
    def total_distance(self) -> float:
        """Sum of all travel-mode distances in km."""
        return sum(getattr(self, name) for name in TRAVEL_FIELDS)

    @property
    def meals_logged(self) -> int:
        """Number of meals recorded across all meal categories."""
        return sum(getattr(self, name) for name in MEAL_FIELDS)

    def measurements(self) -> dict[str, float]:
        """Return the measurement fields as a plain dict."""
        return {name: getattr(self, name) for name in MEASUREMENT_FIELDS}
