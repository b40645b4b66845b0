"""Search API schemas.

Request bodies accept camelCase keys (and snake_case). Entity selectors
accept the scope names ("tasks", "users", ..., "all") or the entity type
values ("TASK", ...).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tasksearch.application.dtos.search import (
    SmartSuggestionsRequest,
    UnifiedSearchRequest,
)
from tasksearch.core.constants import (
    DEFAULT_MAX_SUGGESTIONS,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)
from tasksearch.domain.enums import EntityType, FeedOrdering, SearchScope
from tasksearch.domain.exceptions import ValidationException


def parse_entities(values: Iterable[str] | None) -> frozenset[EntityType]:
    """Entity types named by values; empty or containing "all" means every type.

    Raises:
        ValidationException: If a value names no entity type.
    """
    selected: set[EntityType] = set()
    for raw in values or ():
        for part in raw.split(","):
            name = part.strip()
            if not name:
                continue
            try:
                selected.update(SearchScope(name.lower()).entity_types())
                continue
            except ValueError:
                pass
            try:
                selected.add(EntityType(name.upper()))
            except ValueError as e:
                raise ValidationException(
                    f"Unknown entity '{name}'. Use one of: "
                    + ", ".join(s.value for s in SearchScope),
                    field="entities",
                ) from e
    return frozenset(selected) if selected else frozenset(EntityType)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UnifiedSearchBody(_CamelModel):
    """Body for POST /search."""

    query: str = Field(default="", max_length=500)
    entities: list[str] = Field(default_factory=list)
    page: int = Field(default=0, ge=0)
    size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    include_suggestions: bool = False
    ordering: FeedOrdering | None = None

    def to_request(self) -> UnifiedSearchRequest:
        return UnifiedSearchRequest(
            query=self.query,
            entities=parse_entities(self.entities),
            page=self.page,
            size=self.size,
            include_suggestions=self.include_suggestions,
            ordering=self.ordering,
        )


class SmartSuggestionsBody(_CamelModel):
    """Body for POST /search/smart-suggestions."""

    partial_query: str = Field(default="", max_length=500)
    context: str | None = Field(default=None, max_length=50)
    max_suggestions: int = Field(default=DEFAULT_MAX_SUGGESTIONS, ge=1, le=50)

    def to_request(self) -> SmartSuggestionsRequest:
        return SmartSuggestionsRequest(
            partial_query=self.partial_query,
            context=self.context,
            max_suggestions=self.max_suggestions,
        )


class SearchHistoryBody(BaseModel):
    """Body for POST /search/history."""

    query: str = Field(..., min_length=1, max_length=500)


class SearchHistoryResponse(BaseModel):
    history: list[str]


class HistoryUpdateResponse(BaseModel):
    """Outcome of a history write; False when the store is unavailable."""

    success: bool


class PopularTermsResponse(BaseModel):
    terms: list[str]


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: list[str]


class SmartSuggestionResponse(BaseModel):
    text: str
    type: str
    confidence: float


class SmartSuggestionsResponse(BaseModel):
    suggestions: list[SmartSuggestionResponse]


class ReindexResponse(BaseModel):
    """Entity types for which a bulk reindex event was published."""

    requested: list[EntityType]
    published: list[EntityType]


class IndexStatusResponse(BaseModel):
    indices: dict[str, dict[str, Any]]


class BulkIndexReportResponse(_CamelModel):
    entity_type: EntityType
    requested: int
    indexed: int
    failed: int
    mapping_failures: list[str]
    write_failures: list[str]


class ManualReindexResponse(BaseModel):
    """Per-type outcome of a reindex run directly against the source."""

    reports: list[BulkIndexReportResponse]
