"""Feature package for the eco scorer.

Modules
-------
registry  : FieldSpec dataclass + FIELD_REGISTRY (names, groups, hard defaults)
resolver  : resolve_features() merging request, profile and daily log
"""
