"""Entity source factory: creates the HTTP or in-memory source from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tasksearch.core.config import Settings
    from tasksearch.infrastructure.source.http_source import HttpEntitySource
    from tasksearch.infrastructure.source.memory_source import InMemoryEntitySource


def create_entity_source(
    settings: "Settings | None" = None,
) -> "HttpEntitySource | InMemoryEntitySource":
    """Create the entity source selected by settings.source_backend.

    Raises:
        ValueError: Unknown backend.
    """
    from tasksearch.core.config import get_settings

    backend = (settings or get_settings()).source_backend.lower()
    if backend == "http":
        from tasksearch.infrastructure.source.http_source import HttpEntitySource

        return HttpEntitySource()
    if backend == "memory":
        from tasksearch.infrastructure.source.memory_source import InMemoryEntitySource

        return InMemoryEntitySource()
    raise ValueError(f"Unknown source backend: {backend!r}. Must be 'http' or 'memory'")
