"""Health checks, reindex requests and index status."""

import json

from fastapi import FastAPI
from httpx import AsyncClient

from factories import auth_headers, task
from tasksearch.domain.enums import EntityType
from tasksearch.domain.events import IndexEvent
from tasksearch.infrastructure.exceptions import EntitySourceException
from tasksearch.infrastructure.messaging.publisher import RedisStreamPublisher
from tasksearch.infrastructure.messaging.streams import PAYLOAD_FIELD


async def test_health_returns_ok(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_ready_with_memory_engine_and_redis_disabled(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "search_engine": True, "redis": False}


async def test_ready_reports_unreachable_engine(client: AsyncClient, app: FastAPI) -> None:
    async def ping() -> bool:
        return False

    app.state.search_engine.ping = ping
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


async def test_reindex_requires_authentication(client: AsyncClient) -> None:
    response = await client.post("/api/v1/search/reindex")
    assert response.status_code == 401


async def test_reindex_without_broker_is_unavailable(client: AsyncClient) -> None:
    """Redis is disabled, so no reindex event can be published."""
    response = await client.post("/api/v1/search/reindex", headers=auth_headers(1))
    assert response.status_code == 503
    assert response.json()["error"] == "BROKER_ERROR"


async def test_reindex_publishes_one_event_per_selected_type(
    client: AsyncClient, app: FastAPI, redis_client
) -> None:
    app.state.event_publisher = RedisStreamPublisher(redis_client=redis_client)
    response = await client.post(
        "/api/v1/search/reindex",
        params={"entities": ["teams", "tasks"]},
        headers=auth_headers(1),
    )
    assert response.status_code == 202
    assert response.json() == {"requested": ["TASK", "TEAM"], "published": ["TASK", "TEAM"]}

    publisher = app.state.event_publisher
    for entity_type in (EntityType.TASK, EntityType.TEAM):
        stream = publisher.stream_for(IndexEvent.bulk_reindex(entity_type))
        entries = await redis_client.xrange(stream)
        assert len(entries) == 1
        payload = json.loads(entries[0][1][PAYLOAD_FIELD])
        assert payload["eventType"] == "BULK_REINDEX"
        assert payload["entityType"] == entity_type.value


async def test_reindex_rejects_unknown_entity(
    client: AsyncClient, app: FastAPI, redis_client
) -> None:
    app.state.event_publisher = RedisStreamPublisher(redis_client=redis_client)
    response = await client.post(
        "/api/v1/search/reindex", params={"entities": "comments"}, headers=auth_headers(1)
    )
    assert response.status_code == 400


async def test_index_status_counts_documents(client: AsyncClient, app: FastAPI) -> None:
    await app.state.indexing_service.index(task(task_id=1))
    response = await client.get("/api/v1/search/admin/index-status", headers=auth_headers(1))
    assert response.status_code == 200
    indices = response.json()["indices"]
    assert set(indices) == {"tasks", "projects", "users", "teams"}
    assert indices["tasks"] == {"index": "tasks", "documentCount": 1, "status": "populated"}
    assert indices["teams"]["status"] == "empty"


async def test_manual_reindex_rebuilds_indices_without_broker(
    client: AsyncClient, app: FastAPI
) -> None:
    """Redis is disabled; the index is rebuilt straight from the source."""
    app.state.entity_source.put(task(task_id=1))
    app.state.entity_source.put(task(task_id=2, title="Plan sprint"))

    response = await client.post(
        "/api/v1/search/admin/reindex",
        params={"entities": "tasks"},
        headers=auth_headers(1),
    )

    assert response.status_code == 200
    assert response.json() == {
        "reports": [
            {
                "entityType": "TASK",
                "requested": 2,
                "indexed": 2,
                "failed": 0,
                "mappingFailures": [],
                "writeFailures": [],
            }
        ]
    }
    assert await app.state.search_engine.count("tasks") == 2


async def test_manual_reindex_requires_authentication(client: AsyncClient) -> None:
    response = await client.post("/api/v1/search/admin/reindex")
    assert response.status_code == 401


async def test_manual_reindex_reports_unreadable_source(
    client: AsyncClient, app: FastAPI
) -> None:
    async def find_all(entity_type):
        raise EntitySourceException(entity_type.value, "connection refused")

    app.state.entity_source.find_all = find_all
    response = await client.post(
        "/api/v1/search/admin/reindex",
        params={"entities": "teams"},
        headers=auth_headers(1),
    )
    assert response.status_code == 502
    assert response.json()["error"] == "ENTITY_SOURCE_ERROR"
