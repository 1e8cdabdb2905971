"""
Recommendation engine: turns a resolved feature set into ranked, human-readable
tips.

Modules
-------
rules : RecommendationRule dataclass, DEFAULT_RULES table and
        generate_recommendations(): pure functions, no DB or I/O.
"""
