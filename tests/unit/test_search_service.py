"""SearchService authorization, composition and degradation.

Documents are written through IndexingService into the in-memory engine,
so each test exercises mapping, query building, evaluation and parsing.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from factories import project, task, team, user
from tasksearch.application.dtos.search import PageRequest, UnifiedSearchRequest
from tasksearch.application.use_cases.indexing import IndexingService
from tasksearch.application.use_cases.search import SearchService
from tasksearch.domain.enums import EntityType, FeedOrdering, SearchScope
from tasksearch.domain.exceptions import SearchUnavailableException
from tasksearch.infrastructure.exceptions import SearchEngineException
from tasksearch.infrastructure.search.memory_engine import InMemorySearchEngine


@pytest.fixture
async def seeded(indexing: IndexingService, search_service: SearchService) -> SearchService:
    """Two users' tasks, a private and a public project, two teams, three people."""
    for entity in (
        task(task_id=1, title="Budget report", creator_id=1, assignee_ids=(2,)),
        task(task_id=2, title="Budget review", creator_id=3, assignee_ids=(3,)),
        task(task_id=3, title="Budget planning", creator_id=3, assignee_ids=(4, 2)),
        project(project_id=1, name="Apollo budget", owner_id=1, member_ids=(2,), privacy="PRIVATE"),
        project(project_id=2, name="Gemini budget", owner_id=3, privacy="PUBLIC"),
        team(team_id=1, name="Budget squad", leader_id=1, member_ids=(2,), privacy="PRIVATE"),
        team(team_id=2, name="Open budget guild", leader_id=3, privacy="PUBLIC"),
        user(user_id=1, first_name="Ada", last_name="Lovelace", email="ada@example.com"),
        user(user_id=2, first_name="Alan", last_name="Turing", profile_visibility="PRIVATE"),
        user(user_id=3, first_name="Alonzo", last_name="Church", is_deactivated=True),
    ):
        await indexing.index(entity)
    return search_service


def _ids(page) -> list[str]:
    return sorted(doc.id for doc in page.content)


async def test_anonymous_caller_sees_no_tasks(seeded: SearchService) -> None:
    page = await seeded.search_tasks("budget", None)
    assert page.content == []
    assert page.total_elements == 0


async def test_tasks_visible_to_creator_and_assignees_only(seeded: SearchService) -> None:
    assert _ids(await seeded.search_tasks("budget", 1)) == ["1"]
    assert _ids(await seeded.search_tasks("budget", 2)) == ["1", "3"]
    assert _ids(await seeded.search_tasks("budget", 4)) == ["3"]
    assert _ids(await seeded.search_tasks("budget", 99)) == []


async def test_private_project_hidden_from_non_members(seeded: SearchService) -> None:
    assert _ids(await seeded.search_projects("budget", 2)) == ["1", "2"]
    assert _ids(await seeded.search_projects("budget", 99)) == ["2"]
    assert _ids(await seeded.search_projects("budget", None)) == ["2"]


async def test_my_projects_excludes_public_projects(seeded: SearchService) -> None:
    assert _ids(await seeded.search_my_projects("", 2)) == ["1"]
    assert _ids(await seeded.search_my_projects("", None)) == []


async def test_private_team_visible_to_members(seeded: SearchService) -> None:
    assert _ids(await seeded.search_teams("budget", 2)) == ["1", "2"]
    assert _ids(await seeded.search_teams("budget", 99)) == ["2"]


async def test_joinable_teams_exclude_own_and_private(seeded: SearchService) -> None:
    assert _ids(await seeded.find_joinable_teams("", 2)) == ["2"]
    assert _ids(await seeded.find_joinable_teams("", 3)) == []


async def test_user_search_hides_deactivated_and_private_profiles(seeded: SearchService) -> None:
    assert _ids(await seeded.search_users("ada", 99, PageRequest(0, 10))) == ["1"]
    assert _ids(await seeded.search_users("alan", 99)) == []
    assert _ids(await seeded.search_users("alan", 2)) == ["2"]
    assert _ids(await seeded.search_users("alonzo", 1)) == []


async def test_user_search_prefers_exact_email(seeded: SearchService) -> None:
    page = await seeded.search_users("ada@example.com", None)
    assert _ids(page) == ["1"]
    found = await seeded.find_user_by_email("ADA@example.com", None)
    assert found is not None and found.user_id == 1


async def test_email_search_falls_back_to_fuzzy(seeded: SearchService) -> None:
    """No exact email hit: the fuzzy text query still runs."""
    page = await seeded.search_users("lovelace@nowhere.org", None)
    assert _ids(page) == ["1"]


async def test_overdue_tasks_are_past_due_and_open(
    indexing: IndexingService, search_service: SearchService
) -> None:
    now = datetime.now(UTC)
    await indexing.index(task(task_id=1, creator_id=1, due_date=now - timedelta(days=2)))
    await indexing.index(
        task(task_id=2, creator_id=1, due_date=now - timedelta(days=1), is_completed=True)
    )
    await indexing.index(task(task_id=3, creator_id=1, due_date=now + timedelta(days=1)))
    await indexing.index(task(task_id=4, creator_id=2, due_date=now - timedelta(days=3)))
    assert _ids(await search_service.get_overdue_tasks(1)) == ["1"]


async def test_my_tasks_sorted_by_due_date(
    indexing: IndexingService, search_service: SearchService
) -> None:
    now = datetime.now(UTC)
    await indexing.index(task(task_id=1, creator_id=1, due_date=now + timedelta(days=5)))
    await indexing.index(task(task_id=2, creator_id=1))
    await indexing.index(task(task_id=3, assignee_ids=(1,), creator_id=9, due_date=now))
    page = await search_service.search_my_tasks(None, 1)
    assert [d.id for d in page.content] == ["3", "1", "2"]


async def test_global_search_returns_every_type(seeded: SearchService) -> None:
    result = await seeded.global_search("budget", 2)
    assert set(result.results) == set(EntityType)
    assert _ids(result.results[EntityType.TASK]) == ["1", "3"]
    assert result.degraded == []
    data = result.to_dict()
    assert set(data) >= {"tasks", "projects", "users", "teams", "totalResults", "degraded"}


async def test_global_search_degrades_failing_type(indexing: IndexingService) -> None:
    """One failing entity type becomes an empty page; the rest still answer."""
    engine = indexing.engine
    real_search = engine.search

    async def search(index, request):
        if index == "teams":
            raise SearchEngineException("search", "shard failure")
        return await real_search(index, request)

    engine.search = search
    await indexing.index(project(project_id=1, privacy="PUBLIC"))
    result = await SearchService(engine).global_search("apollo", 1)
    assert result.degraded == [EntityType.TEAM]
    assert result.results[EntityType.TEAM].content == []
    assert _ids(result.results[EntityType.PROJECT]) == ["1"]


async def test_composed_search_times_out_slow_type() -> None:
    engine = InMemorySearchEngine()
    real_search = engine.search

    async def search(index, request):
        if index == "users":
            await asyncio.sleep(1)
        return await real_search(index, request)

    engine.search = search
    service = SearchService(engine, subquery_timeout_seconds=0.05)
    result = await service.quick_search("x", SearchScope.ALL, 1)
    assert result.degraded == [EntityType.USER]


async def test_single_entity_search_raises_when_engine_fails() -> None:
    engine = AsyncMock()
    engine.search = AsyncMock(side_effect=SearchEngineException("search", "down"))
    with pytest.raises(SearchUnavailableException):
        await SearchService(engine).search_projects("apollo", 1)


async def test_unified_search_adds_users_for_email_queries(seeded: SearchService) -> None:
    request = UnifiedSearchRequest(
        query="ada@example.com", entities=frozenset({EntityType.TASK})
    )
    result = await seeded.unified_search(request, 1)
    assert set(result.results) == {EntityType.TASK, EntityType.USER}
    assert _ids(result.results[EntityType.USER]) == ["1"]


async def test_unified_search_orders_and_suggests(seeded: SearchService) -> None:
    request = UnifiedSearchRequest(
        query="budget",
        entities=frozenset({EntityType.PROJECT}),
        include_suggestions=True,
        ordering=FeedOrdering.NEWEST,
    )
    result = await seeded.unified_search(request, 1)
    assert set(result.results) == {EntityType.PROJECT}
    assert "Apollo budget" in result.suggestions


async def test_search_my_content_covers_tasks_and_projects(seeded: SearchService) -> None:
    result = await seeded.search_my_content("budget", None, 2)
    assert set(result.results) == {EntityType.TASK, EntityType.PROJECT}
    assert _ids(result.results[EntityType.PROJECT]) == ["1"]
    only_tasks = await seeded.search_my_content("budget", [EntityType.TASK], 2)
    assert set(only_tasks.results) == {EntityType.TASK}


async def test_autocomplete_prefix_and_blank_term(seeded: SearchService) -> None:
    page = await seeded.autocomplete_projects("gem", 99)
    assert [d.name for d in page.content] == ["Gemini budget"]
    assert (await seeded.autocomplete_tasks("  ", 1)).content == []


async def test_autocomplete_suggestions_are_distinct_labels(seeded: SearchService) -> None:
    labels = await seeded.autocomplete_suggestions("budg", SearchScope.ALL, 1, limit=8)
    assert labels == list(dict.fromkeys(labels))
    assert len(labels) <= 8
    assert "Budget report" in labels
    assert await seeded.autocomplete_suggestions("", SearchScope.ALL, 1) == []
