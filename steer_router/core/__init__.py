"""Routing core: scoring, planning and metrics aggregation."""
