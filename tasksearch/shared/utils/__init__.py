"""Shared utilities: UTC datetimes and identifier generators."""

from tasksearch.shared.utils.datetime import ensure_utc, utc_now, utc_now_ms
from tasksearch.shared.utils.generators import generate_consumer_name, generate_event_id

__all__ = [
    "ensure_utc",
    "generate_consumer_name",
    "generate_event_id",
    "utc_now",
    "utc_now_ms",
]
