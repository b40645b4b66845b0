"""Presentation-layer dependency injection.

Services are built once in the lifespan and kept on app.state; routes get
them through these Depends() providers and never touch infrastructure
directly. The requesting user id comes only from a verified bearer token.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tasksearch.application.dtos.search import PageRequest
from tasksearch.application.use_cases.index_events import IndexEventHandler
from tasksearch.application.use_cases.indexing import IndexingService
from tasksearch.application.use_cases.search import SearchService
from tasksearch.application.use_cases.suggestions import SuggestionService
from tasksearch.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from tasksearch.infrastructure.messaging.publisher import RedisStreamPublisher
from tasksearch.infrastructure.security.jwt import user_id_from_token

logger = logging.getLogger(__name__)

_http_bearer = HTTPBearer(auto_error=False)


async def get_requesting_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> int | None:
    """User id from the bearer token; None when absent or invalid (fail closed)."""
    if not credentials:
        return None
    try:
        return user_id_from_token(credentials.credentials)
    except ValueError as e:
        logger.debug("Ignoring invalid bearer token: %s", e)
        return None


async def require_user_id(
    user_id: Annotated[int | None, Depends(get_requesting_user_id)],
) -> int:
    """User id from the bearer token; raise 401 if missing or invalid."""
    if user_id is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def get_page_request(
    page: Annotated[int, Query(ge=0, description="Zero-based page number")] = 0,
    size: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE, description="Page size")] = DEFAULT_PAGE_SIZE,
) -> PageRequest:
    return PageRequest(page, size)


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def get_suggestion_service(request: Request) -> SuggestionService:
    return request.app.state.suggestion_service


def get_indexing_service(request: Request) -> IndexingService:
    return request.app.state.indexing_service


def get_event_publisher(request: Request) -> RedisStreamPublisher:
    return request.app.state.event_publisher



def get_index_event_handler(request: Request) -> IndexEventHandler:
    return request.app.state.index_event_handler
