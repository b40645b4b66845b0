"""Search engine factory: creates the Elasticsearch or in-memory backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tasksearch.core.config import Settings
    from tasksearch.infrastructure.search.elasticsearch_client import ElasticsearchClient
    from tasksearch.infrastructure.search.memory_engine import InMemorySearchEngine


class SearchEngineFactory:
    """Factory for search engine instances based on configuration."""

    @staticmethod
    def create_search_engine(
        settings: "Settings | None" = None,
    ) -> "ElasticsearchClient | InMemorySearchEngine":
        """Create the search engine client from settings.

        Args:
            settings: Application settings; if None, uses get_settings().

        Returns:
            ElasticsearchClient or InMemorySearchEngine.

        Raises:
            ValueError: Unknown backend.
        """
        from tasksearch.core.config import get_settings

        s = settings or get_settings()
        backend = s.search_backend.lower()

        if backend == "elasticsearch":
            from tasksearch.infrastructure.search.elasticsearch_client import (
                ElasticsearchClient,
            )

            return ElasticsearchClient()
        if backend == "memory":
            from tasksearch.infrastructure.search.memory_engine import (
                InMemorySearchEngine,
            )

            return InMemorySearchEngine()
        raise ValueError(
            f"Unknown search backend: {backend!r}. Must be 'elasticsearch' or 'memory'"
        )
