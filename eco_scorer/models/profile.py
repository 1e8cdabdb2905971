"""
Lifestyle profile model.

``EcoProfile`` holds a user's persistent defaults, captured at onboarding and
edited later.  There is at most one profile per user (``user_id`` is UNIQUE in
``eco_profiles``).  A user without a profile is a valid, *incomplete* state:
the resolver falls back to hard defaults and the dashboard reports
``profile_complete = False``.

Every attribute is optional: ``None`` means "not set on the profile", which
lets the resolver distinguish a stored value from a hard default.  Values are
not checked against the model vocabulary here; that happens at resolution
time against whichever model is currently published.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class EcoProfile(BaseModel):
    """Persistent per-user lifestyle defaults.

    Attributes:
        profile_id: Auto-assigned DB PK; ``None`` before insertion.
        user_id: Owning user (FK resolved by the external auth service).
        household_size: People in the household.
        age_group: Age bracket, e.g. ``"26-35"``.
        lifestyle_type: Working pattern, e.g. ``"remote_worker"``.
        location_type: ``"urban"``, ``"suburban"`` or ``"rural"``.
        vehicle_type: Primary vehicle, or ``"none"``.
        car_fuel_type: Fuel of the primary car, or ``"none"``.
        diet_type: Habitual diet, e.g. ``"vegetarian"``.
        uses_solar_panels: Home solar generation.
        smart_thermostat: Thermostat-managed heating/cooling.
        renewable_energy_percent: Renewable share of electricity, 0 to 100.
        recycling_practiced: Household recycles.
        composting_practiced: Household composts.
        waste_bag_size: ``"small"``, ``"medium"`` or ``"large"``.
        social_activity: How often the user goes out.
        created_at: UTC creation time (set by the DB).
        updated_at: UTC time of the last upsert (set by the DB).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    profile_id: Optional[int] = None
    user_id: int
    household_size: Optional[int] = None
    age_group: Optional[str] = None
    lifestyle_type: Optional[str] = None
    location_type: Optional[str] = None
    vehicle_type: Optional[str] = None
    car_fuel_type: Optional[str] = None
    diet_type: Optional[str] = None
    uses_solar_panels: Optional[bool] = None
    smart_thermostat: Optional[bool] = None
    renewable_energy_percent: Optional[float] = None
    recycling_practiced: Optional[bool] = None
    composting_practiced: Optional[bool] = None
    waste_bag_size: Optional[str] = None
    social_activity: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("household_size")
    @classmethod
    def validate_household_size(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"household_size must be non-negative, got {v}.")
        return v

    @field_validator("renewable_energy_percent")
    @classmethod
    def validate_renewable_percent(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 100.0:
            raise ValueError(
                f"renewable_energy_percent must be in [0, 100], got {v}."
            )
        return v
