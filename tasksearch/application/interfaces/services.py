"""Service interfaces (ports): history store and index event publisher."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from tasksearch.domain.enums import EntityType, IndexEventType

if TYPE_CHECKING:
    from tasksearch.domain.events import IndexEvent


class IHistoryStore(Protocol):
    """Per-user search history and global popularity counters (DIP)."""

    def is_available(self) -> bool:
        """Return True if the backing store is connected."""

    async def save_search_history(self, user_id: int, term: str) -> bool:
        """Record a term for the user. Returns True if stored."""

    async def get_search_history(self, user_id: int, limit: int = 10) -> list[str]:
        """Most recent distinct terms, newest first."""

    async def clear_search_history(self, user_id: int) -> bool:
        """Delete the user's whole history."""

    async def remove_search_history_item(self, user_id: int, term: str) -> bool:
        """Delete one term from the user's history."""

    async def update_popular_search_terms(self, term: str) -> bool:
        """Increment the global counter for a term."""

    async def get_popular_search_terms(self, limit: int = 10) -> list[str]:
        """Most frequently searched terms, highest first."""


class IIndexEventPublisher(Protocol):
    """Fire-and-forget emitter of index events (DIP)."""

    def publish(
        self,
        entity_type: EntityType,
        event_type: IndexEventType,
        entity_id: str | int,
        triggered_by_user_id: int | None = None,
    ) -> None:
        """Schedule delivery and return immediately. Never raises."""

    async def send(self, event: IndexEvent) -> bool:
        """Deliver one event now. Returns False on failure (logged)."""

    async def publish_bulk_reindex(self, entity_type: EntityType) -> bool:
        """Ask consumers to reindex every entity of a type."""
