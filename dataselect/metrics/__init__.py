"""Metric download and aggregation for selected items."""
