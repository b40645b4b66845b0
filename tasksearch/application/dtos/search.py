"""DTOs for search requests and results (no dependency on the engine)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from tasksearch.application.dtos.documents import SearchDocument
from tasksearch.core.constants import (
    DEFAULT_MAX_SUGGESTIONS,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)
from tasksearch.domain.enums import EntityType, FeedOrdering
from tasksearch.domain.exceptions import ValidationException

D = TypeVar("D", bound=SearchDocument)


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page number and page size."""

    page: int = 0
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValidationException("page must be >= 0", field="page")
        if not 1 <= self.size <= MAX_PAGE_SIZE:
            raise ValidationException(
                f"size must be between 1 and {MAX_PAGE_SIZE}", field="size"
            )

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True)
class Page(Generic[D]):
    """One page of typed documents plus paging metadata."""

    content: list[D]
    total_elements: int
    page_number: int
    page_size: int

    @classmethod
    def of(cls, content: list[D], total: int, page_request: PageRequest) -> Page[D]:
        return cls(
            content=content,
            total_elements=max(total, 0),
            page_number=page_request.page,
            page_size=page_request.size,
        )

    @classmethod
    def empty(cls, page_request: PageRequest) -> Page[D]:
        return cls.of([], 0, page_request)

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_elements / self.page_size)

    @property
    def has_next(self) -> bool:
        return (self.page_number + 1) * self.page_size < self.total_elements

    @property
    def has_previous(self) -> bool:
        return self.page_number > 0

    def with_content(self, content: list[D]) -> Page[D]:
        """Same paging metadata, reordered or filtered content."""
        return Page(
            content=content,
            total_elements=self.total_elements,
            page_number=self.page_number,
            page_size=self.page_size,
        )

    def to_dict(self) -> dict[str, Any]:
        """Result contract returned to API callers."""
        return {
            "content": [doc.to_source() for doc in self.content],
            "totalElements": self.total_elements,
            "totalPages": self.total_pages,
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
            "hasNext": self.has_next,
            "hasPrevious": self.has_previous,
        }


@dataclass(frozen=True)
class SubResult(Generic[D]):
    """Outcome of one entity type's query inside a composed search.

    Exactly one of page and error is set. Callers decide what a failure
    means; composed searches turn it into an empty page.
    """

    entity_type: EntityType
    page: Page[D] | None = None
    error: str | None = None

    @classmethod
    def ok(cls, entity_type: EntityType, page: Page[D]) -> SubResult[D]:
        return cls(entity_type=entity_type, page=page)

    @classmethod
    def failed(cls, entity_type: EntityType, error: str) -> SubResult[D]:
        return cls(entity_type=entity_type, error=error)

    @property
    def is_ok(self) -> bool:
        return self.page is not None

    def page_or_empty(self, page_request: PageRequest) -> Page[D]:
        if self.page is not None:
            return self.page
        return Page.empty(page_request)


@dataclass(frozen=True)
class ComposedSearchResult:
    """Per-type pages of a global, unified, quick or my-content search."""

    results: dict[EntityType, Page[Any]]
    degraded: list[EntityType] = field(default_factory=list)
    search_time_ms: int = 0
    suggestions: list[str] = field(default_factory=list)
    query: str = ""

    @property
    def total_results(self) -> int:
        return sum(page.total_elements for page in self.results.values())

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            entity_type.index_name: page.to_dict()
            for entity_type, page in self.results.items()
        }
        data["query"] = self.query
        data["totalResults"] = self.total_results
        data["searchTimeMs"] = self.search_time_ms
        data["degraded"] = [t.value for t in self.degraded]
        if self.suggestions:
            data["suggestions"] = self.suggestions
        return data


@dataclass(frozen=True)
class UnifiedSearchRequest:
    """Caller-selected multi-entity search."""

    query: str = ""
    entities: frozenset[EntityType] = frozenset(EntityType)
    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    include_suggestions: bool = False
    ordering: FeedOrdering | None = None

    @property
    def page_request(self) -> PageRequest:
        return PageRequest(self.page, self.size)


@dataclass(frozen=True)
class SmartSuggestionsRequest:
    """Input for smart suggestions: what the user typed and where."""

    partial_query: str = ""
    context: str | None = None
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS


@dataclass(frozen=True)
class SearchSuggestion:
    """One suggestion with its source and confidence in [0, 1]."""

    text: str
    type: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "type": self.type, "confidence": self.confidence}


@dataclass(frozen=True)
class BulkIndexReport:
    """Outcome of a bulk index call."""

    entity_type: EntityType
    requested: int
    indexed: int
    mapping_failures: list[str] = field(default_factory=list)
    write_failures: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.mapping_failures) + len(self.write_failures)


@dataclass(frozen=True)
class IndexStatus:
    """Document count of one index as reported by the engine."""

    entity_type: EntityType
    index: str
    document_count: int | None
    status: str
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "index": self.index,
            "documentCount": self.document_count,
            "status": self.status,
        }
        if self.error:
            data["error"] = self.error
        return data
