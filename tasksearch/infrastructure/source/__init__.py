"""Entity sources: read current entity state from the system of record."""

from tasksearch.infrastructure.source.factory import create_entity_source
from tasksearch.infrastructure.source.http_source import HttpEntitySource, parse_entity
from tasksearch.infrastructure.source.memory_source import InMemoryEntitySource

__all__ = [
    "HttpEntitySource",
    "InMemoryEntitySource",
    "create_entity_source",
    "parse_entity",
]
