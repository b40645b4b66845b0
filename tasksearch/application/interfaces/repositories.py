"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must
fulfill (DIP). All types reference domain entities, application DTOs or
the query DSL only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from tasksearch.domain.enums import EntityType

if TYPE_CHECKING:
    from tasksearch.application.services.query_dsl import SearchRequest
    from tasksearch.domain.entities import Entity


# Search engine interface
class ISearchEngine(Protocol):
    """Protocol for the search engine document and query API (DIP)."""

    async def upsert(self, index: str, doc_id: str, source: dict[str, Any]) -> None:
        """Create or replace the document with this id."""

    async def delete(self, index: str, doc_id: str) -> bool:
        """Delete by id. Returns False when the document did not exist."""

    async def bulk_upsert(
        self, index: str, documents: list[tuple[str, dict[str, Any]]]
    ) -> list[str]:
        """Upsert many (id, source) pairs. Returns ids that failed to write."""

    async def search(self, index: str, request: SearchRequest) -> dict[str, Any]:
        """Run a query; returns the raw `{hits: {total, hits}}` response."""

    async def count(self, index: str) -> int:
        """Return number of documents in the index."""

    async def ensure_index(self, index: str, mappings: dict[str, Any]) -> bool:
        """Create the index when missing. Returns True if it was created."""

    async def refresh(self, index: str) -> None:
        """Make completed writes visible to search."""

    async def ping(self) -> bool:
        """Return True if the engine answers."""


# System of record read interface
class IEntitySource(Protocol):
    """Protocol for reading authoritative entities (never written back)."""

    async def find_by_id(self, entity_type: EntityType, entity_id: str) -> Entity | None:
        """Return the entity or None if it no longer exists."""

    async def find_all(self, entity_type: EntityType) -> list[Entity]:
        """Return every entity of the given type."""
