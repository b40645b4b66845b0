"""Elasticsearch client over a mocked AsyncElasticsearch, HTTP entity source over httpx.MockTransport."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig, ObjectApiResponse
from elasticsearch import (
    BadRequestError,
    ConnectionError as ESConnectionError,
    ConnectionTimeout,
    NotFoundError,
    SerializationError,
)

from tasksearch.application.services.query_dsl import MatchAll, SearchRequest
from tasksearch.application.use_cases.search import SearchService
from tasksearch.domain.entities import TaskEntity, UserEntity
from tasksearch.domain.enums import EntityType
from tasksearch.infrastructure.exceptions import (
    EntitySourceException,
    SearchEngineException,
    SearchTimeoutException,
)
from tasksearch.infrastructure.search import elasticsearch_client
from tasksearch.infrastructure.search.elasticsearch_client import ElasticsearchClient
from tasksearch.infrastructure.source.http_source import HttpEntitySource, parse_entity


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://es")


def _meta(status: int) -> ApiResponseMeta:
    return ApiResponseMeta(
        status=status,
        http_version="1.1",
        headers=HttpHeaders(),
        duration=0.0,
        node=NodeConfig("http", "localhost", 9200),
    )


def _response(body: dict) -> ObjectApiResponse:
    return ObjectApiResponse(body=body, meta=_meta(200))


@pytest.fixture
def es() -> MagicMock:
    client = MagicMock()
    client.index = AsyncMock(return_value=_response({"result": "created"}))
    client.delete = AsyncMock(return_value=_response({"result": "deleted"}))
    client.search = AsyncMock(
        return_value=_response({"hits": {"total": {"value": 0}, "hits": []}})
    )
    client.count = AsyncMock(return_value=_response({"count": 3}))
    client.ping = AsyncMock(return_value=True)
    client.indices.exists = AsyncMock(return_value=False)
    client.indices.create = AsyncMock(return_value=_response({"acknowledged": True}))
    client.indices.refresh = AsyncMock(return_value=_response({"_shards": {}}))
    return client


async def test_upsert_indexes_document_by_id(es: MagicMock) -> None:
    await ElasticsearchClient(es_client=es).upsert("tasks", "7", {"title": "x"})
    es.index.assert_awaited_once_with(
        index="tasks", id="7", document={"title": "x"}, refresh="false"
    )


async def test_delete_missing_document_returns_false(es: MagicMock) -> None:
    es.delete.side_effect = NotFoundError("not_found", _meta(404), {})
    assert await ElasticsearchClient(es_client=es).delete("tasks", "7") is False


async def test_delete_existing_document_returns_true(es: MagicMock) -> None:
    assert await ElasticsearchClient(es_client=es).delete("tasks", "7") is True


async def test_bulk_upsert_returns_failed_ids(es: MagicMock, monkeypatch) -> None:
    bulk = AsyncMock(
        return_value=(
            1,
            [{"index": {"_id": "2", "status": 400, "error": {"type": "mapper_parsing_exception"}}}],
        )
    )
    monkeypatch.setattr(elasticsearch_client, "async_bulk", bulk)

    failed = await ElasticsearchClient(es_client=es).bulk_upsert(
        "tasks", [("1", {"a": 1}), ("2", {"a": 2})]
    )

    assert failed == ["2"]
    args, kwargs = bulk.call_args
    assert args[0] is es
    assert args[1][0] == {"_op_type": "index", "_index": "tasks", "_id": "1", "_source": {"a": 1}}
    assert kwargs["raise_on_error"] is False


async def test_bulk_upsert_with_no_documents_skips_request(es: MagicMock, monkeypatch) -> None:
    bulk = AsyncMock()
    monkeypatch.setattr(elasticsearch_client, "async_bulk", bulk)
    assert await ElasticsearchClient(es_client=es).bulk_upsert("tasks", []) == []
    bulk.assert_not_awaited()


async def test_search_sends_wire_query(es: MagicMock) -> None:
    raw = await ElasticsearchClient(es_client=es).search("projects", SearchRequest(MatchAll()))
    assert raw["hits"]["hits"] == []
    kwargs = es.search.call_args.kwargs
    assert kwargs["index"] == "projects"
    assert kwargs["body"]["query"] == {"match_all": {}}


async def test_search_with_unreadable_response_returns_empty_body(es: MagicMock) -> None:
    es.search.side_effect = SerializationError("Unknown mimetype 'text/html'")
    assert await ElasticsearchClient(es_client=es).search("tasks", SearchRequest(MatchAll())) == {}


async def test_api_error_raises_search_engine_exception(es: MagicMock) -> None:
    es.count.side_effect = BadRequestError("search_phase_execution_exception", _meta(400), {})
    with pytest.raises(SearchEngineException) as exc_info:
        await ElasticsearchClient(es_client=es).count("tasks")
    assert exc_info.value.status_code == 400


async def test_count_returns_document_count(es: MagicMock) -> None:
    assert await ElasticsearchClient(es_client=es).count("tasks") == 3


async def test_timeout_raises_search_timeout_exception(es: MagicMock) -> None:
    es.search.side_effect = ConnectionTimeout("read timed out")
    with pytest.raises(SearchTimeoutException) as exc_info:
        await ElasticsearchClient(es_client=es).search("tasks", SearchRequest(MatchAll()))
    assert exc_info.value.error_code == "SEARCH_ENGINE_TIMEOUT"


async def test_ensure_index_creates_only_when_missing(es: MagicMock) -> None:
    client = ElasticsearchClient(es_client=es)
    assert await client.ensure_index("teams", {"mappings": {"dynamic": False}}) is True
    es.indices.create.assert_awaited_once_with(index="teams", mappings={"dynamic": False})

    es.indices.exists.return_value = True
    assert await client.ensure_index("teams", {"mappings": {}}) is False
    assert es.indices.create.await_count == 1


async def test_ensure_index_tolerates_concurrent_creation(es: MagicMock) -> None:
    es.indices.create.side_effect = BadRequestError(
        "resource_already_exists_exception", _meta(400), {}
    )
    assert await ElasticsearchClient(es_client=es).ensure_index("teams", {"mappings": {}}) is False


async def test_refresh_refreshes_index(es: MagicMock) -> None:
    await ElasticsearchClient(es_client=es).refresh("users")
    es.indices.refresh.assert_awaited_once_with(index="users")


async def test_ping_is_false_when_unreachable(es: MagicMock) -> None:
    es.ping.side_effect = ESConnectionError("refused")
    assert await ElasticsearchClient(es_client=es).ping() is False


async def test_close_leaves_injected_client_open(es: MagicMock) -> None:
    es.close = AsyncMock()
    await ElasticsearchClient(es_client=es).close()
    es.close.assert_not_awaited()


_TASK_PAYLOAD = {
    "id": 3,
    "title": "Budget report",
    "creator": {"id": 1, "email": "a@example.com"},
    "assignees": [{"id": 2}, None],
    "project": {"id": 9, "name": "Apollo"},
    "dueDate": "2025-05-01T10:00:00Z",
}


def test_parse_entity_reads_camel_case_payload() -> None:
    entity = parse_entity(EntityType.TASK, _TASK_PAYLOAD)
    assert isinstance(entity, TaskEntity)
    assert entity.creator.id == 1
    assert entity.assignees[0].id == 2
    assert entity.assignees[1] is None
    assert entity.project_name == "Apollo"


def test_parse_entity_rejects_wrong_shape() -> None:
    with pytest.raises(EntitySourceException):
        parse_entity(EntityType.USER, {"id": "not-a-number"})


async def test_find_by_id_returns_none_on_404() -> None:
    source = HttpEntitySource(http_client=_client(lambda r: httpx.Response(404)))
    assert await source.find_by_id(EntityType.TASK, "3") is None


async def test_find_by_id_raises_on_server_error() -> None:
    source = HttpEntitySource(http_client=_client(lambda r: httpx.Response(503)))
    with pytest.raises(EntitySourceException):
        await source.find_by_id(EntityType.TASK, "3")


async def test_find_all_follows_pages_and_skips_invalid_items() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        if page == 0:
            return httpx.Response(
                200,
                json={
                    "content": [{"id": 1, "email": "a@example.com"}, {"id": 2}],
                    "last": False,
                },
            )
        return httpx.Response(
            200, json={"content": [{"id": 3, "email": "c@example.com"}], "last": True}
        )

    source = HttpEntitySource(http_client=_client(handler))
    users = await source.find_all(EntityType.USER)
    assert [u.id for u in users] == [1, 3]
    assert all(isinstance(u, UserEntity) for u in users)


async def test_search_service_turns_unreadable_engine_answer_into_empty_page(
    es: MagicMock,
) -> None:
    es.search.side_effect = SerializationError("Unknown mimetype 'text/html'")
    service = SearchService(ElasticsearchClient(es_client=es))

    page = await service.search_tasks("x", 1)

    assert page.content == []
    assert page.total_elements == 0
