"""Search history, popular terms and smart suggestions.

History is per user, so these routes need a valid bearer token (401
otherwise). Popular terms are global.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from tasksearch.api.v1.dependencies import (
    get_requesting_user_id,
    get_suggestion_service,
    require_user_id,
)
from tasksearch.application.use_cases.suggestions import SuggestionService
from tasksearch.core.limiter import limit_writes
from tasksearch.schemas.search import (
    HistoryUpdateResponse,
    PopularTermsResponse,
    SearchHistoryBody,
    SearchHistoryResponse,
    SmartSuggestionResponse,
    SmartSuggestionsBody,
    SmartSuggestionsResponse,
)

router = APIRouter()


@router.get("/history", response_model=SearchHistoryResponse)
async def get_search_history(
    user_id: Annotated[int, Depends(require_user_id)],
    suggestion_svc: Annotated[SuggestionService, Depends(get_suggestion_service)],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> SearchHistoryResponse:
    """Most recent distinct terms, newest first."""
    history = await suggestion_svc.get_search_history(user_id, limit)
    return SearchHistoryResponse(history=history)


@router.post("/history", response_model=HistoryUpdateResponse)
@limit_writes
async def save_search_history(
    request: Request,
    body: SearchHistoryBody,
    user_id: Annotated[int, Depends(require_user_id)],
    suggestion_svc: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> HistoryUpdateResponse:
    """Record a term; terms shorter than two characters are ignored."""
    saved = await suggestion_svc.save_search_history(user_id, body.query)
    return HistoryUpdateResponse(success=saved)


@router.delete("/history", response_model=HistoryUpdateResponse)
@limit_writes
async def clear_search_history(
    request: Request,
    user_id: Annotated[int, Depends(require_user_id)],
    suggestion_svc: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> HistoryUpdateResponse:
    cleared = await suggestion_svc.clear_search_history(user_id)
    return HistoryUpdateResponse(success=cleared)


@router.delete("/history/{query}", response_model=HistoryUpdateResponse)
@limit_writes
async def remove_search_history_item(
    request: Request,
    query: str,
    user_id: Annotated[int, Depends(require_user_id)],
    suggestion_svc: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> HistoryUpdateResponse:
    removed = await suggestion_svc.remove_search_history_item(user_id, query)
    return HistoryUpdateResponse(success=removed)


@router.get("/popular", response_model=PopularTermsResponse)
async def get_popular_search_terms(
    suggestion_svc: Annotated[SuggestionService, Depends(get_suggestion_service)],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> PopularTermsResponse:
    terms = await suggestion_svc.get_popular_search_terms(limit)
    return PopularTermsResponse(terms=terms)


@router.post("/smart-suggestions", response_model=SmartSuggestionsResponse)
async def get_smart_suggestions(
    body: SmartSuggestionsBody,
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
    suggestion_svc: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> SmartSuggestionsResponse:
    """Context, keyword, popular and (for signed-in callers) recent suggestions."""
    suggestions = await suggestion_svc.get_smart_suggestions(body.to_request(), user_id)
    return SmartSuggestionsResponse(
        suggestions=[SmartSuggestionResponse(**s.to_dict()) for s in suggestions]
    )
