"""
Rule-based recommendations from a resolved feature set.

Selection
---------
    1. Evaluate every rule's predicate against the resolved values.
    2. Stable-sort the matches by ``weight`` descending (table order breaks ties).
    3. Drop any rule whose text repeats an earlier match.
    4. Keep the first ``max_count``.

Default rule table (weight: trigger)
------------------------------------
    100  car_km > 10 and bike_km + walk_km < 2      cycle or walk short trips
     95  car_km > 20                                public transport
     90  red_meat_meals >= 2                        cut red meat
     85  not recycling_practiced                    start recycling
     80  ac_hours > 8                               reduce air conditioning
     78  electricity_kwh > 15                       reduce electricity use
     75  food_waste_kg > 1                          plan meals
     70  heating_hours > 8                          reduce heating
     65  renewable_energy_percent < 50, no solar    renewable tariff
     60  not uses_solar_panels                      install solar
     55  shower_frequency > 2                       shorter showers
     50  food_waste_kg > 0, not composting          compost scraps
     45  no smart thermostat, heating or AC used    smart thermostat
     40  water_usage_liters > 200                   save water

Predicates only read values; nothing here does I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from eco_scorer.features.resolver import ResolvedFeatures

Predicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class RecommendationRule:
    """One recommendation and the condition that triggers it.

    Attributes:
        rule_id: Stable identifier, for logs and tests.
        predicate: Returns True when the tip applies to the feature values.
        text: User-facing recommendation.
        weight: Higher weights rank first.
    """

    rule_id: str
    predicate: Predicate
    text: str
    weight: float


DEFAULT_RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(
        "short_car_trips",
        lambda f: f["car_km"] > 10 and f["bike_km"] + f["walk_km"] < 2,
        "Try cycling or walking for short trips instead of driving.",
        100,
    ),
    RecommendationRule(
        "public_transport",
        lambda f: f["car_km"] > 20,
        "Consider public transport for longer journeys to cut car emissions.",
        95,
    ),
    RecommendationRule(
        "red_meat",
        lambda f: f["red_meat_meals"] >= 2,
        "Swap some red-meat meals for poultry, fish or plant-based dishes.",
        90,
    ),
    RecommendationRule(
        "start_recycling",
        lambda f: not f["recycling_practiced"],
        "Start recycling paper, plastic, glass and metal.",
        85,
    ),
    RecommendationRule(
        "air_conditioning",
        lambda f: f["ac_hours"] > 8,
        "Cut air-conditioning hours or raise the set point by a degree or two.",
        80,
    ),
    RecommendationRule(
        "electricity_use",
        lambda f: f["electricity_kwh"] > 15,
        "Switch off standby devices and favour efficient appliances to lower electricity use.",
        78,
    ),
    RecommendationRule(
        "food_waste",
        lambda f: f["food_waste_kg"] > 1,
        "Plan meals and shop with a list to reduce food waste.",
        75,
    ),
    RecommendationRule(
        "heating",
        lambda f: f["heating_hours"] > 8,
        "Lower heating hours or temperature and seal draughts around the home.",
        70,
    ),
    RecommendationRule(
        "renewable_tariff",
        lambda f: f["renewable_energy_percent"] < 50 and not f["uses_solar_panels"],
        "Switch to a renewable electricity tariff.",
        65,
    ),
    RecommendationRule(
        "solar_panels",
        lambda f: not f["uses_solar_panels"],
        "Consider installing solar panels to generate clean electricity.",
        60,
    ),
    RecommendationRule(
        "showers",
        lambda f: f["shower_frequency"] > 2,
        "Take shorter or fewer showers to save water and water-heating energy.",
        55,
    ),
    RecommendationRule(
        "composting",
        lambda f: f["food_waste_kg"] > 0 and not f["composting_practiced"],
        "Compost food scraps instead of sending them to landfill.",
        50,
    ),
    RecommendationRule(
        "smart_thermostat",
        lambda f: not f["smart_thermostat"] and (f["heating_hours"] > 0 or f["ac_hours"] > 0),
        "A smart thermostat can trim wasted heating and cooling.",
        45,
    ),
    RecommendationRule(
        "water_use",
        lambda f: f["water_usage_liters"] > 200,
        "Fix leaks and run only full loads to bring water use down.",
        40,
    ),
)


def generate_recommendations(
    features: ResolvedFeatures | Mapping[str, Any],
    rules: Sequence[RecommendationRule] = DEFAULT_RULES,
    max_count: int = 5,
) -> list[str]:
    """Return up to ``max_count`` recommendation texts, highest weight first.

    Args:
        features: Resolved features (or their ``values`` mapping).
        rules: Rule table to evaluate.
        max_count: Maximum number of recommendations returned.

    Returns:
        Distinct recommendation texts, possibly empty.

    Raises:
        ValueError: If ``max_count`` is negative.
    """
    if max_count < 0:
        raise ValueError(f"max_count must be >= 0, got {max_count}.")

    values = features.values if isinstance(features, ResolvedFeatures) else features
    matched = [rule for rule in rules if rule.predicate(values)]
    matched.sort(key=lambda rule: rule.weight, reverse=True)

    texts: list[str] = []
    for rule in matched:
        if len(texts) >= max_count:
            break
        if rule.text not in texts:
            texts.append(rule.text)
    return texts
