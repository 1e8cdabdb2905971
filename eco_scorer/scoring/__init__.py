"""Score banding: ScoreBand, DEFAULT_BANDS, validate_bands() and categorize()."""
