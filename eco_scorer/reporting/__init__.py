"""
eco_scorer.reporting: flat-file export of the prediction history.

Modules:
  export : CSV/JSON export helpers for PredictionRecord lists.
"""
