"""Pytest configuration and fixtures for tasksearch.

Env is set before any tasksearch import so get_settings() resolves to the
in-process backends: memory search engine, memory entity source, Redis
disabled and telemetry off. HTTP tests run the app lifespan, then swap in
fakeredis-backed stores where a test needs history.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-tasksearch")
os.environ.setdefault("SEARCH_BACKEND", "memory")
os.environ.setdefault("SOURCE_BACKEND", "memory")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("TELEMETRY_ENABLED", "false")
os.environ.setdefault("SEARCH_SUBQUERY_TIMEOUT_SECONDS", "2")

from collections.abc import AsyncIterator  # noqa: E402

import fakeredis  # noqa: E402
import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from tasksearch.application.use_cases.indexing import IndexingService  # noqa: E402
from tasksearch.application.use_cases.search import SearchService  # noqa: E402
from tasksearch.core.config import get_settings  # noqa: E402
from tasksearch.core.limiter import limiter  # noqa: E402
from tasksearch.infrastructure.search.memory_engine import InMemorySearchEngine  # noqa: E402

get_settings.cache_clear()


@pytest.fixture
def engine() -> InMemorySearchEngine:
    """Empty in-memory search engine."""
    return InMemorySearchEngine()


@pytest.fixture
def indexing(engine: InMemorySearchEngine) -> IndexingService:
    return IndexingService(engine)


@pytest.fixture
def search_service(engine: InMemorySearchEngine) -> SearchService:
    return SearchService(engine, subquery_timeout_seconds=2.0)


@pytest.fixture
async def redis_client() -> AsyncIterator[fakeredis.FakeAsyncRedis]:
    """Fresh fakeredis server per test (decoded responses, like production)."""
    yield fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
async def app() -> AsyncIterator[FastAPI]:
    """Application with its lifespan running (memory backends)."""
    from tasksearch.main import create_app

    limiter.reset()
    application = create_app()
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
