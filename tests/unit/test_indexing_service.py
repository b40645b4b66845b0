"""IndexingService with the in-memory engine and with a failing engine."""

from unittest.mock import AsyncMock

from factories import project, task, team, user
from tasksearch.application.use_cases.indexing import IndexingService
from tasksearch.domain.entities import TaskEntity
from tasksearch.domain.enums import EntityType
from tasksearch.infrastructure.exceptions import SearchEngineException
from tasksearch.infrastructure.search.memory_engine import InMemorySearchEngine


async def test_index_writes_document_by_entity_id(
    engine: InMemorySearchEngine, indexing: IndexingService
) -> None:
    assert await indexing.index(task(task_id=4, creator_id=1, assignee_ids=(2,))) is True
    stored = engine.get("tasks", "4")
    assert stored is not None
    assert stored["creatorId"] == 1
    assert stored["visibleToUserIds"] == [2]


async def test_index_twice_leaves_one_document(
    engine: InMemorySearchEngine, indexing: IndexingService
) -> None:
    """Replaying the same upsert is idempotent."""
    await indexing.index(project(project_id=1))
    await indexing.index(project(project_id=1))
    assert await engine.count("projects") == 1


async def test_index_returns_false_when_engine_fails() -> None:
    engine = AsyncMock()
    engine.upsert = AsyncMock(side_effect=SearchEngineException("upsert", "boom"))
    indexing = IndexingService(engine)
    assert await indexing.index(user()) is False


async def test_delete_of_absent_document_succeeds(indexing: IndexingService) -> None:
    assert await indexing.delete(EntityType.TEAM, "404") is True


async def test_delete_returns_false_when_engine_fails() -> None:
    engine = AsyncMock()
    engine.delete = AsyncMock(side_effect=SearchEngineException("delete", "boom"))
    assert await IndexingService(engine).delete(EntityType.TASK, "1") is False


async def test_bulk_index_continues_past_unmappable_entity(
    engine: InMemorySearchEngine, indexing: IndexingService
) -> None:
    """A task without creator is reported; the others are written."""
    entities = [task(task_id=1), TaskEntity(id=2, title="orphan"), task(task_id=3)]
    report = await indexing.bulk_index(EntityType.TASK, entities)
    assert report.requested == 3
    assert report.indexed == 2
    assert report.mapping_failures == ["2"]
    assert engine.get("tasks", "1") is not None
    assert engine.get("tasks", "3") is not None


async def test_bulk_index_rejects_entities_of_another_type(
    indexing: IndexingService,
) -> None:
    report = await indexing.bulk_index(EntityType.TEAM, [team(team_id=1), user(user_id=2)])
    assert report.indexed == 1
    assert report.mapping_failures == ["2"]


async def test_bulk_index_chunks_and_counts_write_failures() -> None:
    engine = AsyncMock()
    engine.bulk_upsert = AsyncMock(
        side_effect=[["2"], SearchEngineException("bulk", "boom")]
    )
    indexing = IndexingService(engine, bulk_chunk_size=2)
    report = await indexing.bulk_index(
        EntityType.TASK, [task(task_id=i) for i in (1, 2, 3)]
    )
    assert engine.bulk_upsert.await_count == 2
    assert report.write_failures == ["2", "3"]
    assert report.indexed == 1
    assert report.failed == 2


async def test_ensure_indices_creates_every_index(indexing: IndexingService) -> None:
    created = await indexing.ensure_indices()
    assert created == {t: True for t in EntityType}
    again = await indexing.ensure_indices()
    assert not any(again.values())


async def test_index_status_reports_counts_and_errors() -> None:
    engine = AsyncMock()
    engine.count = AsyncMock(
        side_effect=[3, 0, SearchEngineException("count", "down"), 1]
    )
    statuses = await IndexingService(engine).index_status()
    assert [s.status for s in statuses] == ["populated", "empty", "error", "populated"]
    assert statuses[2].document_count is None
    assert statuses[2].to_dict()["error"]
