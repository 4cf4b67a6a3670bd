"""Scoring pipeline: normalization, factors, weights, flags, overrides, aggregation."""
