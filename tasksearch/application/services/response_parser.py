"""Schema-checked parsing of search engine responses into typed pages."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import ValidationError

from tasksearch.application.dtos.documents import (
    ProjectSearchDocument,
    SearchDocument,
    TaskSearchDocument,
    TeamSearchDocument,
    UserSearchDocument,
)
from tasksearch.application.dtos.search import Page, PageRequest
from tasksearch.domain.enums import EntityType

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=SearchDocument)

DOCUMENT_MODELS: dict[EntityType, type[SearchDocument]] = {
    EntityType.TASK: TaskSearchDocument,
    EntityType.PROJECT: ProjectSearchDocument,
    EntityType.USER: UserSearchDocument,
    EntityType.TEAM: TeamSearchDocument,
}


def _total_hits(hits: dict[str, Any], fallback: int) -> int:
    total = hits.get("total")
    if isinstance(total, bool):
        return fallback
    if isinstance(total, int):
        return total
    if isinstance(total, dict) and isinstance(total.get("value"), int):
        return total["value"]
    return fallback


def parse_hit(hit: Any, model: type[D]) -> D | None:
    """Parse one hit; None when the hit itself is not an object."""
    if not isinstance(hit, dict):
        return None
    source = hit.get("_source")
    if not isinstance(source, dict):
        source = {}
    try:
        doc = model.model_validate(source)
    except ValidationError:
        logger.warning("Unparseable hit %s; using defaults", hit.get("_id"))
        doc = model()
    if not doc.id and hit.get("_id") is not None:
        doc = doc.model_copy(update={"id": str(hit["_id"])})
    return doc


def parse_search_response(
    raw: Any,
    model: type[D],
    page_request: PageRequest,
) -> Page[D]:
    """Turn a raw engine response into a typed page.

    A response without a usable hits section yields an empty page. Within
    a usable response, each hit is parsed on its own so a bad hit never
    aborts the page.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("hits"), dict):
        logger.warning("Malformed search response for %s; returning empty page", model.__name__)
        return Page.empty(page_request)
    hits = raw["hits"]
    items = hits.get("hits")
    if not isinstance(items, list):
        items = []
    content: list[D] = []
    for hit in items:
        doc = parse_hit(hit, model)
        if doc is not None:
            content.append(doc)
    return Page.of(content, _total_hits(hits, len(content)), page_request)
