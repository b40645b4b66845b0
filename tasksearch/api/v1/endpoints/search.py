"""Search API: thin routes delegating to SearchService.

Anonymous callers are allowed; their queries carry a fail-closed access
clause (no tasks, only non-private projects, teams and profiles).
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from tasksearch.api.v1.dependencies import (
    get_page_request,
    get_requesting_user_id,
    get_search_service,
    get_suggestion_service,
)
from tasksearch.application.dtos.search import Page, PageRequest
from tasksearch.application.use_cases.search import SearchService
from tasksearch.application.use_cases.suggestions import SuggestionService
from tasksearch.core.constants import DEFAULT_AUTOCOMPLETE_LIMIT
from tasksearch.core.limiter import limit_search
from tasksearch.domain.enums import SearchScope
from tasksearch.schemas.search import (
    SuggestionsResponse,
    UnifiedSearchBody,
    parse_entities,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_AUTOCOMPLETE_MAX = 20


def _page_response(term: str | None, page: Page[Any]) -> dict[str, Any]:
    return {"query": term or "", **page.to_dict()}


def _autocomplete_response(term: str | None, page: Page[Any]) -> dict[str, Any]:
    return {"query": term or "", "suggestions": [doc.to_source() for doc in page.content]}


def _record_search(
    background: BackgroundTasks,
    suggestions: SuggestionService,
    user_id: int | None,
    term: str | None,
) -> None:
    """Save the term to the caller's history after the response is sent."""
    if user_id is not None and term and term.strip():
        background.add_task(suggestions.save_search_history, user_id, term)


@router.get("/global")
@limit_search
async def global_search(
    request: Request,
    background: BackgroundTasks,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    suggestion_svc: Annotated[SuggestionService, Depends(get_suggestion_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
) -> dict[str, Any]:
    """Search tasks, projects, users and teams at once."""
    result = await search_svc.global_search(q, user_id, page_request)
    _record_search(background, suggestion_svc, user_id, q)
    return result.to_dict()


@router.post("")
@limit_search
async def unified_search(
    request: Request,
    body: UnifiedSearchBody,
    background: BackgroundTasks,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    suggestion_svc: Annotated[SuggestionService, Depends(get_suggestion_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
) -> dict[str, Any]:
    """Search the selected entity types with optional ordering and suggestions."""
    result = await search_svc.unified_search(body.to_request(), user_id)
    _record_search(background, suggestion_svc, user_id, body.query)
    return result.to_dict()


@router.get("/quick")
@limit_search
async def quick_search(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
    scope: SearchScope = SearchScope.ALL,
) -> dict[str, Any]:
    result = await search_svc.quick_search(q, scope, user_id, page_request)
    return result.to_dict()


@router.get("/my")
@limit_search
async def search_my_content(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
    entities: Annotated[list[str] | None, Query()] = None,
) -> dict[str, Any]:
    """The caller's own tasks and projects."""
    result = await search_svc.search_my_content(
        q, parse_entities(entities), user_id, page_request
    )
    return result.to_dict()


@router.get("/autocomplete", response_model=SuggestionsResponse)
@limit_search
async def autocomplete(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    q: Annotated[str, Query(max_length=200)] = "",
    entity: SearchScope = SearchScope.ALL,
    limit: Annotated[int, Query(ge=1, le=_AUTOCOMPLETE_MAX)] = 10,
) -> SuggestionsResponse:
    """Distinct titles and names starting with the typed text."""
    suggestions = await search_svc.autocomplete_suggestions(q, entity, user_id, limit)
    return SuggestionsResponse(query=q, suggestions=suggestions)


# ---- Tasks ----


@router.get("/tasks")
@limit_search
async def search_tasks(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
) -> dict[str, Any]:
    return _page_response(q, await search_svc.search_tasks(q, user_id, page_request))


@router.get("/tasks/my")
@limit_search
async def search_my_tasks(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
) -> dict[str, Any]:
    return _page_response(q, await search_svc.search_my_tasks(q, user_id, page_request))


@router.get("/tasks/overdue")
@limit_search
async def overdue_tasks(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
) -> dict[str, Any]:
    return _page_response(None, await search_svc.get_overdue_tasks(user_id, page_request))


@router.get("/tasks/autocomplete")
@limit_search
async def autocomplete_tasks(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    q: Annotated[str, Query(max_length=200)] = "",
    limit: Annotated[int, Query(ge=1, le=_AUTOCOMPLETE_MAX)] = DEFAULT_AUTOCOMPLETE_LIMIT,
) -> dict[str, Any]:
    return _autocomplete_response(q, await search_svc.autocomplete_tasks(q, user_id, limit))


# ---- Projects ----


@router.get("/projects")
@limit_search
async def search_projects(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
) -> dict[str, Any]:
    return _page_response(q, await search_svc.search_projects(q, user_id, page_request))


@router.get("/projects/my")
@limit_search
async def search_my_projects(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
) -> dict[str, Any]:
    return _page_response(
        q, await search_svc.search_my_projects(q, user_id, page_request)
    )


@router.get("/projects/autocomplete")
@limit_search
async def autocomplete_projects(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    q: Annotated[str, Query(max_length=200)] = "",
    limit: Annotated[int, Query(ge=1, le=_AUTOCOMPLETE_MAX)] = DEFAULT_AUTOCOMPLETE_LIMIT,
) -> dict[str, Any]:
    return _autocomplete_response(
        q, await search_svc.autocomplete_projects(q, user_id, limit)
    )


# ---- Users ----


@router.get("/users")
@limit_search
async def search_users(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
) -> dict[str, Any]:
    """People search; an email-shaped q is matched exactly first."""
    return _page_response(q, await search_svc.search_users(q, user_id, page_request))


@router.get("/users/autocomplete")
@limit_search
async def autocomplete_users(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    q: Annotated[str, Query(max_length=200)] = "",
    limit: Annotated[int, Query(ge=1, le=_AUTOCOMPLETE_MAX)] = DEFAULT_AUTOCOMPLETE_LIMIT,
) -> dict[str, Any]:
    return _autocomplete_response(q, await search_svc.autocomplete_users(q, user_id, limit))


# ---- Teams ----


@router.get("/teams")
@limit_search
async def search_teams(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
) -> dict[str, Any]:
    return _page_response(q, await search_svc.search_teams(q, user_id, page_request))


@router.get("/teams/joinable")
@limit_search
async def joinable_teams(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    page_request: Annotated[PageRequest, Depends(get_page_request)],
    q: Annotated[str | None, Query(max_length=500)] = None,
) -> dict[str, Any]:
    """Non-private teams the caller could join."""
    return _page_response(
        q, await search_svc.find_joinable_teams(q, user_id, page_request)
    )


@router.get("/teams/autocomplete")
@limit_search
async def autocomplete_teams(
    request: Request,
    search_svc: Annotated[SearchService, Depends(get_search_service)],
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    q: Annotated[str, Query(max_length=200)] = "",
    limit: Annotated[int, Query(ge=1, le=_AUTOCOMPLETE_MAX)] = DEFAULT_AUTOCOMPLETE_LIMIT,
) -> dict[str, Any]:
    return _autocomplete_response(q, await search_svc.autocomplete_teams(q, user_id, limit))
