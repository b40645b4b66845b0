"""SuggestionService with a mocked history store."""

from unittest.mock import AsyncMock

import pytest

from tasksearch.application.dtos.search import SmartSuggestionsRequest
from tasksearch.application.use_cases.suggestions import SuggestionService


@pytest.fixture
def history() -> AsyncMock:
    store = AsyncMock()
    store.get_popular_search_terms = AsyncMock(return_value=["roadmap", "my tasks"])
    store.get_search_history = AsyncMock(return_value=["budget report"])
    return store


async def test_smart_suggestions_ranked_by_confidence(history: AsyncMock) -> None:
    service = SuggestionService(history)
    suggestions = await service.get_smart_suggestions(
        SmartSuggestionsRequest(partial_query="due", context="tasks", max_suggestions=10),
        user_id=1,
    )
    texts = [s.text for s in suggestions]
    assert texts[0] in ("my tasks", "due today")
    confidences = [s.confidence for s in suggestions]
    assert confidences == sorted(confidences, reverse=True)
    assert "budget report" in texts
    # "my tasks" comes from context first; the popular duplicate is dropped
    assert texts.count("my tasks") == 1
    assert next(s for s in suggestions if s.text == "my tasks").type == "context"


async def test_equal_confidence_keeps_source_order(history: AsyncMock) -> None:
    service = SuggestionService(history)
    suggestions = await service.get_smart_suggestions(
        SmartSuggestionsRequest(partial_query="due", context="tasks", max_suggestions=10),
        user_id=1,
    )
    texts = [s.text for s in suggestions]
    # Both 0.9: context suggestion precedes keyword suggestion
    assert texts.index("my tasks") < texts.index("due today")


async def test_anonymous_caller_gets_no_recent_suggestions(history: AsyncMock) -> None:
    service = SuggestionService(history)
    suggestions = await service.get_smart_suggestions(
        SmartSuggestionsRequest(max_suggestions=10), user_id=None
    )
    assert {s.type for s in suggestions} == {"popular"}
    history.get_search_history.assert_not_awaited()


async def test_suggestions_truncated_to_max(history: AsyncMock) -> None:
    service = SuggestionService(history)
    suggestions = await service.get_smart_suggestions(
        SmartSuggestionsRequest(partial_query="urgent overdue", context="tasks", max_suggestions=2),
        user_id=1,
    )
    assert len(suggestions) == 2


async def test_history_passthrough_uses_default_limit(history: AsyncMock) -> None:
    service = SuggestionService(history, default_limit=7)
    await service.get_search_history(3)
    history.get_search_history.assert_awaited_once_with(3, 7)
    await service.get_popular_search_terms(4)
    history.get_popular_search_terms.assert_awaited_once_with(4)
