"""Operational scripts (index consumer worker, reindex requests)."""
