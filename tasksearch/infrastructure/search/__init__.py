"""Search engine backends (Elasticsearch HTTP, in-memory) and index mappings."""

from tasksearch.infrastructure.search.elasticsearch_client import ElasticsearchClient
from tasksearch.infrastructure.search.factory import SearchEngineFactory
from tasksearch.infrastructure.search.memory_engine import InMemorySearchEngine

__all__ = [
    "ElasticsearchClient",
    "InMemorySearchEngine",
    "SearchEngineFactory",
]
