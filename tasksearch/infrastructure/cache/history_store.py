"""Redis-backed search history and popularity counters.

Per-user history is a sorted set of normalized terms scored by save time,
capped at search_history_max_size (oldest evicted) with a 30-day TTL
refreshed on every save. A global sorted set counts how often each term
is searched, with a 7-day TTL. Every operation degrades when Redis is
unavailable: reads return [], writes return False.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import redis.asyncio as redis

from tasksearch.core.constants import MIN_HISTORY_TERM_LENGTH
from tasksearch.infrastructure.cache.keys import popular_terms_key, search_history_key
from tasksearch.infrastructure.cache.redis_connection import RedisConnection
from tasksearch.shared.utils.datetime import utc_now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DAY_SECONDS = 24 * 60 * 60


def normalize_term(term: str | None) -> str:
    """Trimmed, lowercased term ('' for None)."""
    return (term or "").strip().lower()


def is_recordable(term: str | None) -> bool:
    """Terms shorter than the minimum length are never stored."""
    return len(normalize_term(term)) >= MIN_HISTORY_TERM_LENGTH


def _distinct(values: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        if value and value.strip():
            seen.setdefault(value, None)
    return list(seen)


class SearchHistoryStore(RedisConnection):
    """History and popularity store (IHistoryStore)."""

    component = "Search history store"

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        super().__init__(redis_client)
        self.max_size = self.settings.search_history_max_size
        self.history_ttl = self.settings.search_history_ttl_days * _DAY_SECONDS
        self.popular_ttl = self.settings.search_popular_ttl_days * _DAY_SECONDS
        self._last_score = 0

    def _next_score(self) -> int:
        """Save time in ms, strictly increasing within this process."""
        self._last_score = max(utc_now_ms(), self._last_score + 1)
        return self._last_score

    async def _execute(
        self,
        operation: str,
        command: Callable[[redis.Redis], Awaitable[T]],
        default: T,
    ) -> T:
        """Run command with one reconnect attempt; default when Redis is unusable."""
        if not self.is_available() or self.redis is None:
            return default
        try:
            return await command(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            if await self._reconnect() and self.redis is not None:
                try:
                    return await command(self.redis)
                except redis.RedisError:
                    logger.exception("%s failed after reconnect", operation)
                    return default
            logger.warning("%s unavailable (Redis disconnected)", operation)
            return default
        except redis.RedisError:
            logger.exception("%s failed", operation)
            return default

    async def save_search_history(self, user_id: int, term: str) -> bool:
        """Record term for user and bump its popularity.

        Returns:
            True if stored; False for too-short terms or Redis failure.
        """
        if not is_recordable(term):
            return False
        normalized = normalize_term(term)
        key = search_history_key(user_id)

        async def _save(r: redis.Redis) -> bool:
            await r.zadd(key, {normalized: self._next_score()})
            count = await r.zcard(key)
            if count > self.max_size:
                await r.zremrangebyrank(key, 0, count - self.max_size - 1)
            await r.expire(key, self.history_ttl)
            return True

        saved = await self._execute("Save search history", _save, False)
        if saved:
            await self.update_popular_search_terms(normalized)
            logger.debug("Saved search term for user %s", user_id)
        return saved

    async def get_search_history(self, user_id: int, limit: int = 10) -> list[str]:
        """Most recent distinct terms, newest first."""
        if limit <= 0:
            return []
        key = search_history_key(user_id)

        async def _get(r: redis.Redis) -> list[str]:
            return list(await r.zrevrange(key, 0, limit - 1))

        return _distinct(await self._execute("Get search history", _get, []))

    async def clear_search_history(self, user_id: int) -> bool:
        key = search_history_key(user_id)

        async def _clear(r: redis.Redis) -> bool:
            await r.delete(key)
            return True

        cleared = await self._execute("Clear search history", _clear, False)
        if cleared:
            logger.info("Cleared search history for user %s", user_id)
        return cleared

    async def remove_search_history_item(self, user_id: int, term: str) -> bool:
        """Remove one term (normalized first). True if it was present."""
        normalized = normalize_term(term)
        if not normalized:
            return False
        key = search_history_key(user_id)

        async def _remove(r: redis.Redis) -> bool:
            return bool(await r.zrem(key, normalized))

        return await self._execute("Remove search history item", _remove, False)

    async def update_popular_search_terms(self, term: str) -> bool:
        """Increment the global counter for term and refresh its TTL."""
        normalized = normalize_term(term)
        if not normalized:
            return False
        key = popular_terms_key()

        async def _bump(r: redis.Redis) -> bool:
            await r.zincrby(key, 1, normalized)
            await r.expire(key, self.popular_ttl)
            return True

        return await self._execute("Update popular search terms", _bump, False)

    async def get_popular_search_terms(self, limit: int = 10) -> list[str]:
        """Most searched terms, highest count first."""
        if limit <= 0:
            return []
        key = popular_terms_key()

        async def _get(r: redis.Redis) -> list[str]:
            return list(await r.zrevrange(key, 0, limit - 1))

        return _distinct(await self._execute("Get popular search terms", _get, []))
