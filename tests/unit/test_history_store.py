"""SearchHistoryStore against fakeredis, plus degraded behavior."""

from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from tasksearch.infrastructure.cache.history_store import (
    SearchHistoryStore,
    is_recordable,
    normalize_term,
)
from tasksearch.infrastructure.cache.keys import popular_terms_key, search_history_key


@pytest.fixture
def store(redis_client) -> SearchHistoryStore:
    return SearchHistoryStore(redis_client=redis_client)


def test_normalize_and_recordable() -> None:
    assert normalize_term("  Budget Report ") == "budget report"
    assert normalize_term(None) == ""
    assert not is_recordable(" a ")
    assert is_recordable("ab")


async def test_history_is_newest_first_and_deduplicated(store: SearchHistoryStore) -> None:
    """Saving an existing term moves it to the front instead of duplicating it."""
    for term in ("budget report", "Budget Report", "tasks due"):
        assert await store.save_search_history(1, term) is True
    assert await store.get_search_history(1) == ["tasks due", "budget report"]


async def test_resaving_moves_term_to_front(store: SearchHistoryStore) -> None:
    for term in ("alpha", "beta", "alpha"):
        await store.save_search_history(1, term)
    assert await store.get_search_history(1) == ["alpha", "beta"]


async def test_history_is_capped_and_evicts_oldest(store: SearchHistoryStore, redis_client) -> None:
    store.max_size = 50
    for i in range(55):
        await store.save_search_history(1, f"term {i}")
    assert await redis_client.zcard(search_history_key(1)) == 50
    history = await store.get_search_history(1, limit=50)
    assert history[0] == "term 54"
    assert "term 4" not in history
    assert "term 5" in history


async def test_history_has_ttl(store: SearchHistoryStore, redis_client) -> None:
    await store.save_search_history(1, "budget")
    ttl = await redis_client.ttl(search_history_key(1))
    assert 0 < ttl <= store.history_ttl


async def test_short_terms_are_not_saved(store: SearchHistoryStore) -> None:
    assert await store.save_search_history(1, "x") is False
    assert await store.get_search_history(1) == []


async def test_history_is_per_user(store: SearchHistoryStore) -> None:
    await store.save_search_history(1, "mine")
    assert await store.get_search_history(2) == []


async def test_limit_applies(store: SearchHistoryStore) -> None:
    for term in ("one", "two", "three"):
        await store.save_search_history(1, term)
    assert await store.get_search_history(1, limit=2) == ["three", "two"]
    assert await store.get_search_history(1, limit=0) == []


async def test_remove_and_clear(store: SearchHistoryStore) -> None:
    await store.save_search_history(1, "alpha")
    await store.save_search_history(1, "beta")
    assert await store.remove_search_history_item(1, "  ALPHA ") is True
    assert await store.remove_search_history_item(1, "gamma") is False
    assert await store.get_search_history(1) == ["beta"]
    assert await store.clear_search_history(1) is True
    assert await store.get_search_history(1) == []


async def test_popular_terms_count_across_users(store: SearchHistoryStore, redis_client) -> None:
    await store.save_search_history(1, "budget")
    await store.save_search_history(2, "budget")
    await store.save_search_history(2, "roadmap")
    assert await store.get_popular_search_terms(5) == ["budget", "roadmap"]
    assert await redis_client.ttl(popular_terms_key()) > 0


async def test_unconnected_store_degrades() -> None:
    """No Redis: reads are empty and writes report False."""
    store = SearchHistoryStore()
    assert store.is_available() is False
    assert await store.save_search_history(1, "budget") is False
    assert await store.get_search_history(1) == []
    assert await store.get_popular_search_terms() == []
    assert await store.clear_search_history(1) is False


async def test_redis_error_degrades_without_raising() -> None:
    client = AsyncMock()
    client.zadd = AsyncMock(side_effect=redis.ResponseError("WRONGTYPE"))
    client.zrevrange = AsyncMock(side_effect=redis.ResponseError("WRONGTYPE"))
    store = SearchHistoryStore(redis_client=client)
    assert await store.save_search_history(1, "budget") is False
    assert await store.get_search_history(1) == []
