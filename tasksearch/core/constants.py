"""Core constants: key prefixes, stream names and shared literal values.

Single source of truth for Redis key structure and topic naming. Used by
the history store, the stream publisher and the stream consumer.
"""

# Redis key prefixes
CACHE_PREFIX_SEARCH_HISTORY = "search_history"
SEARCH_POPULAR_TERMS_KEY = "search_popular_terms"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Event stream topics (one per entity type plus the batch topic)
TOPIC_TASK_EVENTS = "search.task.events"
TOPIC_PROJECT_EVENTS = "search.project.events"
TOPIC_USER_EVENTS = "search.user.events"
TOPIC_TEAM_EVENTS = "search.team.events"
TOPIC_BATCH_EVENTS = "search.batch.events"
TOPIC_DEAD_LETTER = "search.dead-letter"

# Entity id carried by bulk reindex events
BULK_REINDEX_ENTITY_ID = "ALL"

# Search document schema version written into every document
SEARCH_DOCUMENT_SCHEMA_VERSION = 1

# Query shaping
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_AUTOCOMPLETE_LIMIT = 5
MIN_HISTORY_TERM_LENGTH = 2
DEFAULT_MAX_SUGGESTIONS = 5
