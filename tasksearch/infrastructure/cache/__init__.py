"""Redis-backed stores: search history and popularity counters."""

from tasksearch.infrastructure.cache.history_store import SearchHistoryStore
from tasksearch.infrastructure.cache.redis_connection import RedisConnection

__all__ = ["RedisConnection", "SearchHistoryStore"]
