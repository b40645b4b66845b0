"""Search use cases: single-entity, composed and autocomplete queries.

Every query carries an access clause derived from the requesting user id
(see query_builder). Single-entity searches surface engine failures as
SearchUnavailableException. Composed searches run their sub-queries
concurrently, each under its own timeout, and turn a failing sub-query
into an empty page listed under `degraded`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Collection, Sequence
from typing import Any

from tasksearch.application.dtos.documents import (
    ProjectSearchDocument,
    TaskSearchDocument,
    TeamSearchDocument,
    UserSearchDocument,
)
from tasksearch.application.dtos.search import (
    ComposedSearchResult,
    Page,
    PageRequest,
    SubResult,
    UnifiedSearchRequest,
)
from tasksearch.application.interfaces.repositories import ISearchEngine
from tasksearch.application.services.query_builder import (
    build_query,
    is_email_shaped,
    joinable_teams_query,
    overdue_tasks_query,
    project_query,
    task_query,
    user_by_email_query,
    user_query,
)
from tasksearch.application.services.query_dsl import (
    MatchNone,
    Query,
    SearchRequest,
    SortField,
)
from tasksearch.application.services.ranking import rank
from tasksearch.application.services.response_parser import (
    DOCUMENT_MODELS,
    parse_search_response,
)
from tasksearch.core.constants import DEFAULT_AUTOCOMPLETE_LIMIT, DEFAULT_MAX_SUGGESTIONS
from tasksearch.domain.enums import EntityType, FeedOrdering, SearchScope
from tasksearch.domain.exceptions import (
    SearchBackendException,
    SearchUnavailableException,
    TaskSearchException,
)
from tasksearch.shared.telemetry.tracing import add_span_attributes, traced
from tasksearch.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_DUE_SOONEST = (SortField("dueDate", descending=False), SortField("createdAt"))
_AUTOCOMPLETE_TYPES_PER_LIMIT = 4


def _clean(term: str | None) -> str:
    return (term or "").strip()


def _default_page(page_request: PageRequest | None) -> PageRequest:
    return page_request or PageRequest()


class SearchService:
    """Authorization-aware search over tasks, projects, users and teams."""

    def __init__(
        self, engine: ISearchEngine, subquery_timeout_seconds: float = 5.0
    ) -> None:
        self.engine = engine
        self.subquery_timeout_seconds = subquery_timeout_seconds

    # ---- Execution ----

    async def _execute(
        self,
        entity_type: EntityType,
        query: Query,
        page_request: PageRequest,
        sort: Sequence[SortField] = (),
    ) -> Page[Any]:
        """Run one query and parse the hits. Engine errors propagate."""
        if isinstance(query, MatchNone):
            return Page.empty(page_request)
        request = SearchRequest(
            query=query,
            offset=page_request.offset,
            size=page_request.size,
            sort=tuple(sort),
        )
        raw = await self.engine.search(entity_type.index_name, request)
        return parse_search_response(raw, DOCUMENT_MODELS[entity_type], page_request)

    async def _search_single(
        self,
        entity_type: EntityType,
        query: Query,
        page_request: PageRequest,
        sort: Sequence[SortField] = (),
    ) -> Page[Any]:
        """_execute for single-entity operations.

        Raises:
            SearchUnavailableException: If the engine call failed.
        """
        try:
            return await self._execute(entity_type, query, page_request, sort)
        except SearchBackendException as e:
            logger.error("%s search failed: %s", entity_type.value, e.message)
            raise SearchUnavailableException(entity_type.value, e.message) from e

    async def _sub_query(
        self, entity_type: EntityType, search: Awaitable[Page[Any]]
    ) -> SubResult[Any]:
        """Run one sub-query of a composed search under the timeout."""
        try:
            page = await asyncio.wait_for(search, self.subquery_timeout_seconds)
        except TimeoutError:
            logger.warning(
                "%s sub-query timed out after %ss",
                entity_type.value,
                self.subquery_timeout_seconds,
            )
            return SubResult.failed(entity_type, "timed out")
        except TaskSearchException as e:
            logger.warning("%s sub-query failed: %s", entity_type.value, e.message)
            return SubResult.failed(entity_type, e.message)
        return SubResult.ok(entity_type, page)

    async def _compose(
        self,
        searches: dict[EntityType, Awaitable[Page[Any]]],
        page_request: PageRequest,
        term: str,
        started: float,
        ordering: FeedOrdering | None = None,
    ) -> ComposedSearchResult:
        sub_results = await asyncio.gather(
            *(self._sub_query(t, s) for t, s in searches.items())
        )
        results: dict[EntityType, Page[Any]] = {}
        degraded: list[EntityType] = []
        for sub in sub_results:
            if not sub.is_ok:
                degraded.append(sub.entity_type)
            page = sub.page_or_empty(page_request)
            if ordering is not None:
                page = page.with_content(rank(page.content, ordering))
            results[sub.entity_type] = page
        return ComposedSearchResult(
            results=results,
            degraded=degraded,
            search_time_ms=int((time.perf_counter() - started) * 1000),
            query=term,
        )

    # ---- Single-entity search ----

    @traced("search.tasks")
    async def search_tasks(
        self, term: str | None, user_id: int | None, page_request: PageRequest | None = None
    ) -> Page[TaskSearchDocument]:
        return await self._search_single(
            EntityType.TASK, task_query(_clean(term), user_id), _default_page(page_request)
        )

    @traced("search.projects")
    async def search_projects(
        self, term: str | None, user_id: int | None, page_request: PageRequest | None = None
    ) -> Page[ProjectSearchDocument]:
        return await self._search_single(
            EntityType.PROJECT,
            project_query(_clean(term), user_id),
            _default_page(page_request),
        )

    @traced("search.teams")
    async def search_teams(
        self, term: str | None, user_id: int | None, page_request: PageRequest | None = None
    ) -> Page[TeamSearchDocument]:
        return await self._search_single(
            EntityType.TEAM,
            build_query(EntityType.TEAM, _clean(term), user_id),
            _default_page(page_request),
        )

    @traced("search.users")
    async def search_users(
        self, term: str | None, user_id: int | None, page_request: PageRequest | None = None
    ) -> Page[UserSearchDocument]:
        """People search; email-shaped terms try an exact email match first."""
        term = _clean(term)
        page_request = _default_page(page_request)
        if is_email_shaped(term):
            exact = await self._search_single(
                EntityType.USER, user_query(term, user_id, email_exact=True), page_request
            )
            if exact.total_elements:
                return exact
            logger.debug("No exact email match, falling back to fuzzy user search")
        return await self._search_single(
            EntityType.USER, user_query(term, user_id), page_request
        )

    async def search_my_tasks(
        self, term: str | None, user_id: int | None, page_request: PageRequest | None = None
    ) -> Page[TaskSearchDocument]:
        """Tasks the user created or is assigned to, soonest due first."""
        return await self._search_single(
            EntityType.TASK,
            task_query(_clean(term), user_id),
            _default_page(page_request),
            sort=_DUE_SOONEST,
        )

    async def search_my_projects(
        self, term: str | None, user_id: int | None, page_request: PageRequest | None = None
    ) -> Page[ProjectSearchDocument]:
        """Projects the user owns or is a member of (no public branch)."""
        return await self._search_single(
            EntityType.PROJECT,
            project_query(_clean(term), user_id, owned_only=True),
            _default_page(page_request),
        )

    async def get_overdue_tasks(
        self, user_id: int | None, page_request: PageRequest | None = None
    ) -> Page[TaskSearchDocument]:
        """Accessible, incomplete tasks whose due date has passed."""
        return await self._search_single(
            EntityType.TASK,
            overdue_tasks_query(user_id, utc_now()),
            _default_page(page_request),
            sort=_DUE_SOONEST,
        )

    async def find_joinable_teams(
        self, term: str | None, user_id: int | None, page_request: PageRequest | None = None
    ) -> Page[TeamSearchDocument]:
        return await self._search_single(
            EntityType.TEAM,
            joinable_teams_query(_clean(term), user_id),
            _default_page(page_request),
        )

    async def find_user_by_email(
        self, email: str, user_id: int | None
    ) -> UserSearchDocument | None:
        email = _clean(email)
        if not email:
            return None
        page = await self._search_single(
            EntityType.USER, user_by_email_query(email, user_id), PageRequest(0, 1)
        )
        return page.content[0] if page.content else None

    # ---- Composed search ----

    def _search_for(
        self,
        entity_type: EntityType,
        term: str,
        user_id: int | None,
        page_request: PageRequest,
    ) -> Awaitable[Page[Any]]:
        if entity_type is EntityType.TASK:
            return self.search_tasks(term, user_id, page_request)
        if entity_type is EntityType.PROJECT:
            return self.search_projects(term, user_id, page_request)
        if entity_type is EntityType.USER:
            return self.search_users(term, user_id, page_request)
        return self.search_teams(term, user_id, page_request)

    @traced("search.global")
    async def global_search(
        self, term: str | None, user_id: int | None, page_request: PageRequest | None = None
    ) -> ComposedSearchResult:
        """All four entity types; failing types degrade to empty pages."""
        started = time.perf_counter()
        term = _clean(term)
        page_request = _default_page(page_request)
        return await self._compose(
            {t: self._search_for(t, term, user_id, page_request) for t in EntityType},
            page_request,
            term,
            started,
        )

    @traced("search.unified")
    async def unified_search(
        self, request: UnifiedSearchRequest, user_id: int | None
    ) -> ComposedSearchResult:
        """Caller-selected entity types.

        An empty selection means every type. An email-shaped query always
        includes users.
        """
        started = time.perf_counter()
        term = _clean(request.query)
        page_request = request.page_request
        selected = set(request.entities) or set(EntityType)
        if is_email_shaped(term):
            selected.add(EntityType.USER)
        add_span_attributes(
            entities=",".join(sorted(t.value for t in selected)),
            ordering=request.ordering.value if request.ordering else "relevance",
        )
        result = await self._compose(
            {
                t: self._search_for(t, term, user_id, page_request)
                for t in EntityType
                if t in selected
            },
            page_request,
            term,
            started,
            ordering=request.ordering,
        )
        if request.include_suggestions and term:
            suggestions = await self.autocomplete_suggestions(
                term, SearchScope.ALL, user_id, DEFAULT_MAX_SUGGESTIONS
            )
            result = ComposedSearchResult(
                results=result.results,
                degraded=result.degraded,
                search_time_ms=int((time.perf_counter() - started) * 1000),
                suggestions=suggestions,
                query=term,
            )
        return result

    async def quick_search(
        self,
        term: str | None,
        scope: SearchScope,
        user_id: int | None,
        page_request: PageRequest | None = None,
    ) -> ComposedSearchResult:
        started = time.perf_counter()
        term = _clean(term)
        page_request = _default_page(page_request)
        return await self._compose(
            {
                t: self._search_for(t, term, user_id, page_request)
                for t in scope.entity_types()
            },
            page_request,
            term,
            started,
        )

    async def search_my_content(
        self,
        term: str | None,
        entities: Collection[EntityType] | None,
        user_id: int | None,
        page_request: PageRequest | None = None,
    ) -> ComposedSearchResult:
        """The user's own tasks and projects (either or both)."""
        started = time.perf_counter()
        term = _clean(term)
        page_request = _default_page(page_request)
        wanted = set(entities or ()) or {EntityType.TASK, EntityType.PROJECT}
        searches: dict[EntityType, Awaitable[Page[Any]]] = {}
        if EntityType.TASK in wanted:
            searches[EntityType.TASK] = self.search_my_tasks(term, user_id, page_request)
        if EntityType.PROJECT in wanted:
            searches[EntityType.PROJECT] = self.search_my_projects(
                term, user_id, page_request
            )
        return await self._compose(searches, page_request, term, started)

    # ---- Autocomplete ----

    async def _autocomplete(
        self, entity_type: EntityType, term: str | None, user_id: int | None, limit: int
    ) -> Page[Any]:
        term = _clean(term)
        page_request = PageRequest(0, limit)
        if not term:
            return Page.empty(page_request)
        return await self._search_single(
            entity_type, build_query(entity_type, term, user_id, prefix=True), page_request
        )

    async def autocomplete_tasks(
        self, term: str | None, user_id: int | None, limit: int = DEFAULT_AUTOCOMPLETE_LIMIT
    ) -> Page[TaskSearchDocument]:
        return await self._autocomplete(EntityType.TASK, term, user_id, limit)

    async def autocomplete_projects(
        self, term: str | None, user_id: int | None, limit: int = DEFAULT_AUTOCOMPLETE_LIMIT
    ) -> Page[ProjectSearchDocument]:
        return await self._autocomplete(EntityType.PROJECT, term, user_id, limit)

    async def autocomplete_users(
        self, term: str | None, user_id: int | None, limit: int = DEFAULT_AUTOCOMPLETE_LIMIT
    ) -> Page[UserSearchDocument]:
        return await self._autocomplete(EntityType.USER, term, user_id, limit)

    async def autocomplete_teams(
        self, term: str | None, user_id: int | None, limit: int = DEFAULT_AUTOCOMPLETE_LIMIT
    ) -> Page[TeamSearchDocument]:
        return await self._autocomplete(EntityType.TEAM, term, user_id, limit)

    @traced("search.autocomplete_suggestions")
    async def autocomplete_suggestions(
        self,
        term: str | None,
        scope: SearchScope,
        user_id: int | None,
        limit: int = 10,
    ) -> list[str]:
        """Labels (titles, names) of matching documents, distinct, at most limit.

        Across all types each type contributes limit // 4 labels (at least
        one). A failing type contributes nothing.
        """
        if limit <= 0 or not _clean(term):
            return []
        entity_types = scope.entity_types()
        per_type = limit
        if len(entity_types) > 1:
            per_type = max(1, limit // _AUTOCOMPLETE_TYPES_PER_LIMIT)
        sub_results = await asyncio.gather(
            *(
                self._sub_query(t, self._autocomplete(t, term, user_id, per_type))
                for t in entity_types
            )
        )
        labels: dict[str, None] = {}
        for sub in sub_results:
            if sub.page is None:
                continue
            for doc in sub.page.content[:per_type]:
                if doc.label:
                    labels.setdefault(doc.label, None)
        return list(labels)[:limit]
