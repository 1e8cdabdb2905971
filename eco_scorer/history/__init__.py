"""
Prediction history: the append-only audit trail and the views built on it.

Modules
-------
tracker   : PredictionHistory (append, previous_score, daily_trend).
dashboard : build_dashboard() aggregating history, profile and today's log.
"""
