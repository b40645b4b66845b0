"""Search history and smart suggestion use cases."""

from __future__ import annotations

import logging

from tasksearch.application.dtos.search import SearchSuggestion, SmartSuggestionsRequest
from tasksearch.application.interfaces.services import IHistoryStore

logger = logging.getLogger(__name__)

# Context -> suggestions offered whenever the user searches in that context
_CONTEXT_SUGGESTIONS: dict[str, tuple[tuple[str, float], ...]] = {
    "tasks": (("my tasks", 0.9), ("overdue tasks", 0.8), ("high priority", 0.7)),
    "projects": (("my projects", 0.9), ("active projects", 0.8)),
    "users": (("online users", 0.7), ("premium users", 0.6)),
    "teams": (("my teams", 0.9),),
}

# (trigger words, suggestion, confidence)
_KEYWORD_SUGGESTIONS: tuple[tuple[tuple[str, ...], str, float], ...] = (
    (("overdue", "late"), "overdue tasks from last week", 0.8),
    (("today", "due"), "due today", 0.9),
    (("urgent", "priority"), "high priority tasks", 0.8),
)

_POPULAR_COUNT = 3
_POPULAR_CONFIDENCE = 0.6
_RECENT_COUNT = 3
_RECENT_CONFIDENCE = 0.7


class SuggestionService:
    """Per-user history plus context, keyword, popular and recent suggestions."""

    def __init__(self, history: IHistoryStore, default_limit: int = 10) -> None:
        self.history = history
        self.default_limit = default_limit

    async def save_search_history(self, user_id: int, term: str) -> bool:
        return await self.history.save_search_history(user_id, term)

    async def get_search_history(self, user_id: int, limit: int | None = None) -> list[str]:
        return await self.history.get_search_history(user_id, limit or self.default_limit)

    async def clear_search_history(self, user_id: int) -> bool:
        return await self.history.clear_search_history(user_id)

    async def remove_search_history_item(self, user_id: int, term: str) -> bool:
        return await self.history.remove_search_history_item(user_id, term)

    async def get_popular_search_terms(self, limit: int | None = None) -> list[str]:
        return await self.history.get_popular_search_terms(limit or self.default_limit)

    async def get_smart_suggestions(
        self, request: SmartSuggestionsRequest, user_id: int | None
    ) -> list[SearchSuggestion]:
        """Suggestions ranked by confidence, highest first.

        Sources, in order: the search context, keywords in the partial
        query, globally popular terms and the user's recent searches.
        Equal confidences keep that order. Texts are never repeated.
        """
        if request.max_suggestions <= 0:
            return []
        suggestions: list[SearchSuggestion] = []
        seen: set[str] = set()

        def add(text: str, kind: str, confidence: float) -> None:
            if text and text not in seen:
                seen.add(text)
                suggestions.append(SearchSuggestion(text, kind, confidence))

        context = (request.context or "").strip().lower()
        for text, confidence in _CONTEXT_SUGGESTIONS.get(context, ()):
            add(text, "context", confidence)

        partial = (request.partial_query or "").lower()
        for triggers, text, confidence in _KEYWORD_SUGGESTIONS:
            if any(word in partial for word in triggers):
                add(text, "keyword", confidence)

        for term in await self.history.get_popular_search_terms(_POPULAR_COUNT):
            add(term, "popular", _POPULAR_CONFIDENCE)

        if user_id is not None:
            for term in await self.history.get_search_history(user_id, _RECENT_COUNT):
                add(term, "recent", _RECENT_CONFIDENCE)

        suggestions.sort(key=lambda s: -s.confidence)
        logger.debug(
            "Built %d smart suggestions for context %r", len(suggestions), context or None
        )
        return suggestions[: request.max_suggestions]
