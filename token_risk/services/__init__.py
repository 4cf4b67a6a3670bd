"""Services backing the scoring engine."""
