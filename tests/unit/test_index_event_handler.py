"""IndexEventHandler: events to index writes, with the memory engine and source."""

from unittest.mock import AsyncMock

import pytest

from factories import project, task
from tasksearch.application.use_cases.index_events import ConsumerStats, IndexEventHandler
from tasksearch.application.use_cases.indexing import IndexingService
from tasksearch.application.use_cases.search import SearchService
from tasksearch.domain.entities import ProjectEntity
from tasksearch.domain.enums import EntityType, EventOutcome, IndexEventType
from tasksearch.domain.events import IndexEvent
from tasksearch.infrastructure.exceptions import EntitySourceException
from tasksearch.infrastructure.search.memory_engine import InMemorySearchEngine
from tasksearch.infrastructure.source.memory_source import InMemoryEntitySource


def _event(event_type: IndexEventType, entity_id: str, entity_type=EntityType.TASK) -> IndexEvent:
    return IndexEvent(event_type=event_type, entity_type=entity_type, entity_id=entity_id)


@pytest.fixture
def source() -> InMemoryEntitySource:
    return InMemoryEntitySource()


@pytest.fixture
def handler(source: InMemoryEntitySource, indexing: IndexingService) -> IndexEventHandler:
    return IndexEventHandler(source, indexing)


async def test_create_event_indexes_current_state(
    handler: IndexEventHandler, source: InMemoryEntitySource, engine: InMemorySearchEngine
) -> None:
    source.put(task(task_id=1, title="First"))
    assert await handler.handle(_event(IndexEventType.CREATE, "1")) is EventOutcome.INDEXED
    source.put(task(task_id=1, title="Renamed"))
    assert await handler.handle(_event(IndexEventType.UPDATE, "1")) is EventOutcome.INDEXED
    assert engine.get("tasks", "1")["title"] == "Renamed"
    assert handler.stats.indexed == 2


async def test_missing_entity_is_skipped(handler: IndexEventHandler) -> None:
    """An entity deleted before its update event was consumed is not indexed."""
    outcome = await handler.handle(_event(IndexEventType.UPDATE, "404"))
    assert outcome is EventOutcome.SKIPPED
    assert handler.stats.skipped == 1
    assert handler.stats.dropped == 1


async def test_delete_event_removes_document(
    handler: IndexEventHandler, source: InMemoryEntitySource, engine: InMemorySearchEngine
) -> None:
    source.put(task(task_id=2))
    await handler.handle(_event(IndexEventType.CREATE, "2"))
    source.remove(EntityType.TASK, 2)
    assert await handler.handle(_event(IndexEventType.DELETE, "2")) is EventOutcome.DELETED
    assert engine.get("tasks", "2") is None
    # Replay is harmless
    assert await handler.handle(_event(IndexEventType.DELETE, "2")) is EventOutcome.DELETED


async def test_source_failure_is_counted_and_dropped(indexing: IndexingService) -> None:
    source = AsyncMock()
    source.find_by_id = AsyncMock(side_effect=EntitySourceException("TASK", "503"))
    handler = IndexEventHandler(source, indexing)
    outcome = await handler.handle(_event(IndexEventType.UPDATE, "1"))
    assert outcome is EventOutcome.FAILED
    assert handler.stats.failed == 1
    assert handler.stats.processed == 1


async def test_unmappable_entity_fails_without_raising(
    handler: IndexEventHandler, source: InMemoryEntitySource
) -> None:
    source.put(ProjectEntity(id=1, name="ownerless"))
    outcome = await handler.handle(_event(IndexEventType.CREATE, "1", EntityType.PROJECT))
    assert outcome is EventOutcome.FAILED


async def test_bulk_reindex_indexes_every_entity(
    handler: IndexEventHandler, source: InMemoryEntitySource, engine: InMemorySearchEngine
) -> None:
    for i in range(3):
        source.put(task(task_id=i))
    outcome = await handler.handle(IndexEvent.bulk_reindex(EntityType.TASK))
    assert outcome is EventOutcome.REINDEXED
    assert await engine.count("tasks") == 3


async def test_batch_topic_event_always_reindexes(
    handler: IndexEventHandler, source: InMemoryEntitySource, engine: InMemorySearchEngine
) -> None:
    source.put(project(project_id=5))
    outcome = await handler.handle_batch(_event(IndexEventType.UPDATE, "5", EntityType.PROJECT))
    assert outcome is EventOutcome.REINDEXED
    assert engine.get("projects", "5") is not None
    assert handler.stats.reindexed == 1


def test_consumer_stats_to_dict() -> None:
    stats = ConsumerStats()
    stats.record(EventOutcome.INDEXED)
    stats.record(EventOutcome.FAILED)
    stats.malformed += 1
    assert stats.to_dict() == {
        "processed": 2,
        "indexed": 1,
        "deleted": 0,
        "reindexed": 0,
        "skipped": 0,
        "failed": 1,
        "malformed": 1,
        "dropped": 2,
    }


async def _visible_task_ids(engine: InMemorySearchEngine, user_id: int) -> list[str]:
    page = await SearchService(engine).search_tasks("", user_id)
    return [doc.id for doc in page.content]


async def test_reassigned_task_follows_its_new_assignee(
    handler: IndexEventHandler, source: InMemoryEntitySource, engine: InMemorySearchEngine
) -> None:
    """Task 7 created by user 1 for user 2, then handed over to user 4."""
    source.put(task(task_id=7, creator_id=1, assignee_ids=(2,)))
    await handler.handle(_event(IndexEventType.CREATE, "7"))
    assert await _visible_task_ids(engine, 2) == ["7"]
    assert await _visible_task_ids(engine, 4) == []

    source.put(task(task_id=7, creator_id=1, assignee_ids=(4,)))
    await handler.handle(_event(IndexEventType.UPDATE, "7"))

    assert await _visible_task_ids(engine, 4) == ["7"]
    assert await _visible_task_ids(engine, 2) == []
    assert await _visible_task_ids(engine, 1) == ["7"]


async def test_replayed_event_leaves_the_same_end_state(
    handler: IndexEventHandler, source: InMemoryEntitySource, engine: InMemorySearchEngine
) -> None:
    source.put(task(task_id=3, title="Quarterly plan", creator_id=5, assignee_ids=(6,)))
    event = _event(IndexEventType.UPDATE, "3")

    await handler.handle(event)
    first = engine.get("tasks", "3")
    await handler.handle(event)

    assert engine.get("tasks", "3") == first
    assert await engine.count("tasks") == 1
    assert await _visible_task_ids(engine, 6) == ["3"]
