"""
Feature registry for the eco-score model.

This module is the single source of truth for every field that can appear in
a resolved feature set.  The resolver, the encoder, the request model and the
recommendation rules all key off the names declared here.

Groups
------
profile      Persistent lifestyle defaults.  Resolved request → profile →
             hard default.
measurement  Day-scoped activity figures.  Resolved request → same-day daily
             log → 0.  The profile is never consulted.
computed     Derived from other resolved values (and the request date).
             Always tagged with provenance ``computed``.

Kinds
-----
numeric      Non-negative float/int quantity.
boolean      Yes/no flag; encoded as 0/1.
categorical  Free string validated against the model's published vocabulary
             and one-hot encoded.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional


class FeatureSource(StrEnum):
    """Provenance tag recording where a resolved value came from."""

    REQUEST = "request"
    PROFILE = "profile"
    DEFAULT = "default"
    COMPUTED = "computed"


@dataclass(frozen=True)
class FieldSpec:
    """Specification for a single feature field.

    Attributes:
        name: Feature name, shared by requests, profiles, logs and the model.
        kind: ``"numeric"``, ``"boolean"`` or ``"categorical"``.
        group: ``"profile"``, ``"measurement"`` or ``"computed"``.
        default: Hard default used when no source supplies a value.
        description: Human-readable explanation.
        max_value: Inclusive upper bound for numeric fields, if any.
        is_integer: True for count-like numeric fields.
    """

    name: str
    kind: str
    group: str
    default: Any
    description: str
    max_value: Optional[float] = None
    is_integer: bool = False


# ── Registry ──────────────────────────────────────────────────────────────────

FIELD_REGISTRY: list[FieldSpec] = [

    # ── Profile-backed ──────────────────────────────────────────────────────
    FieldSpec("household_size",           "numeric",     "profile", 1,
              "People sharing the household's energy and waste.", is_integer=True),
    FieldSpec("age_group",                "categorical", "profile", "26-35",
              "Age bracket of the user."),
    FieldSpec("lifestyle_type",           "categorical", "profile", "office_worker",
              "Working pattern (office, remote, student, ...)."),
    FieldSpec("location_type",            "categorical", "profile", "urban",
              "Urban / suburban / rural residence."),
    FieldSpec("vehicle_type",             "categorical", "profile", "none",
              "Primary private vehicle."),
    FieldSpec("car_fuel_type",            "categorical", "profile", "none",
              "Fuel of the primary car."),
    FieldSpec("diet_type",                "categorical", "profile", "omnivore",
              "Habitual diet."),
    FieldSpec("uses_solar_panels",        "boolean",     "profile", False,
              "Home has solar generation."),
    FieldSpec("smart_thermostat",         "boolean",     "profile", False,
              "Home heating/cooling is thermostat-managed."),
    FieldSpec("renewable_energy_percent", "numeric",     "profile", 0.0,
              "Share of household electricity from renewables.", max_value=100.0),
    FieldSpec("recycling_practiced",      "boolean",     "profile", False,
              "Household separates recyclables."),
    FieldSpec("composting_practiced",     "boolean",     "profile", False,
              "Household composts organic waste."),
    FieldSpec("waste_bag_size",           "categorical", "profile", "medium",
              "Typical general-waste bag size."),
    FieldSpec("social_activity",          "categorical", "profile", "sometimes",
              "How often the user goes out socially."),

    # ── Travel (measurement) ────────────────────────────────────────────────
    FieldSpec("car_km",            "numeric", "measurement", 0.0, "Distance driven by car."),
    FieldSpec("bus_km",            "numeric", "measurement", 0.0, "Distance by bus."),
    FieldSpec("train_metro_km",    "numeric", "measurement", 0.0, "Distance by train or metro."),
    FieldSpec("bike_km",           "numeric", "measurement", 0.0, "Distance cycled."),
    FieldSpec("walk_km",           "numeric", "measurement", 0.0, "Distance walked."),

    # ── Energy (measurement) ────────────────────────────────────────────────
    FieldSpec("electricity_kwh",    "numeric", "measurement", 0.0, "Electricity used."),
    FieldSpec("natural_gas_therms", "numeric", "measurement", 0.0, "Natural gas used."),
    FieldSpec("ac_hours",           "numeric", "measurement", 0.0, "Hours of air conditioning."),
    FieldSpec("heating_hours",      "numeric", "measurement", 0.0, "Hours of heating."),
    FieldSpec("water_usage_liters", "numeric", "measurement", 0.0, "Water consumed."),

    # ── Food (measurement) ──────────────────────────────────────────────────
    FieldSpec("red_meat_meals",   "numeric", "measurement", 0, "Red-meat meals eaten.", is_integer=True),
    FieldSpec("poultry_meals",    "numeric", "measurement", 0, "Poultry meals eaten.", is_integer=True),
    FieldSpec("fish_meals",       "numeric", "measurement", 0, "Fish meals eaten.", is_integer=True),
    FieldSpec("vegetarian_meals", "numeric", "measurement", 0, "Vegetarian meals eaten.", is_integer=True),
    FieldSpec("vegan_meals",      "numeric", "measurement", 0, "Vegan meals eaten.", is_integer=True),
    FieldSpec("food_waste_kg",    "numeric", "measurement", 0.0, "Food thrown away."),
    FieldSpec("grocery_bill",     "numeric", "measurement", 0.0, "Grocery spend."),

    # ── Waste (measurement) ─────────────────────────────────────────────────
    FieldSpec("waste_bag_count",   "numeric", "measurement", 0, "General-waste bags filled.", is_integer=True),
    FieldSpec("general_waste_kg",  "numeric", "measurement", 0.0, "General waste produced."),
    FieldSpec("recycled_waste_kg", "numeric", "measurement", 0.0, "Waste recycled."),

    # ── Lifestyle (measurement) ─────────────────────────────────────────────
    FieldSpec("new_clothes_monthly", "numeric", "measurement", 0, "New clothing items per month.", is_integer=True),
    FieldSpec("shower_frequency",    "numeric", "measurement", 0, "Showers taken.", is_integer=True),
    FieldSpec("tv_pc_hours",         "numeric", "measurement", 0.0, "Screen hours (TV / PC)."),
    FieldSpec("internet_hours",      "numeric", "measurement", 0.0, "Hours online."),

    # ── Computed ────────────────────────────────────────────────────────────
    FieldSpec("total_distance",              "numeric",     "computed", 0.0,
              "Sum of all travel-mode distances."),
    FieldSpec("sustainable_transport_ratio", "numeric",     "computed", 1.0,
              "Share of distance by bike, foot, bus or rail (1.0 with no travel)."),
    FieldSpec("public_transport_usage",      "numeric",     "computed", 0.0,
              "Share of distance by bus or rail."),
    FieldSpec("energy_efficiency",           "numeric",     "computed", 0.0,
              "Blend of renewable share, solar and thermostat flags in [0, 1]."),
    FieldSpec("recycling_rate",              "numeric",     "computed", 0.0,
              "Recycled share of total waste weight."),
    FieldSpec("per_capita_co2",              "numeric",     "computed", 0.0,
              "Car + electricity CO2 estimate divided by household size."),
    FieldSpec("is_weekend",                  "boolean",     "computed", False,
              "Request date falls on Saturday or Sunday."),
    FieldSpec("month",                       "numeric",     "computed", 1,
              "Calendar month of the request date.", is_integer=True),
    FieldSpec("season",                      "categorical", "computed", "winter",
              "Meteorological season of the request date."),
    FieldSpec("day_of_week",                 "categorical", "computed", "Monday",
              "Weekday name of the request date."),
]

_BY_NAME: dict[str, FieldSpec] = {spec.name: spec for spec in FIELD_REGISTRY}

TRAVEL_FIELDS: tuple[str, ...] = ("car_km", "bus_km", "train_metro_km", "bike_km", "walk_km")
MEAL_FIELDS: tuple[str, ...] = (
    "red_meat_meals", "poultry_meals", "fish_meals", "vegetarian_meals", "vegan_meals",
)

# Emission factors used by per_capita_co2 (kg CO2 per unit).
CAR_CO2_PER_KM = 0.21
ELECTRICITY_CO2_PER_KWH = 0.5


# ── Accessors ─────────────────────────────────────────────────────────────────

def get_spec(name: str) -> FieldSpec:
    """Return the ``FieldSpec`` for ``name``.

    Raises:
        KeyError: If ``name`` is not registered.
    """
    return _BY_NAME[name]


def is_registered(name: str) -> bool:
    return name in _BY_NAME


def field_names(group: Optional[str] = None, kind: Optional[str] = None) -> list[str]:
    """Return registered names, optionally filtered by ``group`` and/or ``kind``."""
    return [
        spec.name
        for spec in FIELD_REGISTRY
        if (group is None or spec.group == group) and (kind is None or spec.kind == kind)
    ]


def profile_defaults() -> dict[str, Any]:
    """Hard defaults for every profile-backed field."""
    return {spec.name: spec.default for spec in FIELD_REGISTRY if spec.group == "profile"}


PROFILE_FIELDS: list[str] = field_names(group="profile")
MEASUREMENT_FIELDS: list[str] = field_names(group="measurement")
COMPUTED_FIELDS: list[str] = field_names(group="computed")
CATEGORICAL_FIELDS: list[str] = field_names(kind="categorical")
