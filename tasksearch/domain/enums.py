"""Domain enumerations for the search subsystem.

Enums represent fixed sets of domain values (entity types, event types,
privacy levels) shared by indexing and querying.
"""

from enum import Enum

from tasksearch.core.constants import (
    TOPIC_PROJECT_EVENTS,
    TOPIC_TASK_EVENTS,
    TOPIC_TEAM_EVENTS,
    TOPIC_USER_EVENTS,
)


class EntityType(str, Enum):
    """Authoritative entity types mirrored into the search index."""

    TASK = "TASK"
    PROJECT = "PROJECT"
    USER = "USER"
    TEAM = "TEAM"

    @property
    def index_name(self) -> str:
        """Search index holding documents of this type."""
        return _INDEX_NAMES[self]

    @property
    def topic(self) -> str:
        """Event topic carrying index events for this type."""
        return _TOPICS[self]

    @classmethod
    def from_topic(cls, topic: str) -> "EntityType":
        """Return the entity type whose topic is `topic`.

        Raises:
            ValueError: If no entity type publishes to that topic.
        """
        for entity_type, name in _TOPICS.items():
            if name == topic:
                return entity_type
        raise ValueError(f"No entity type for topic {topic!r}")

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid entity type values as strings."""
        return [t.value for t in cls]


_INDEX_NAMES: dict[EntityType, str] = {
    EntityType.TASK: "tasks",
    EntityType.PROJECT: "projects",
    EntityType.USER: "users",
    EntityType.TEAM: "teams",
}

_TOPICS: dict[EntityType, str] = {
    EntityType.TASK: TOPIC_TASK_EVENTS,
    EntityType.PROJECT: TOPIC_PROJECT_EVENTS,
    EntityType.USER: TOPIC_USER_EVENTS,
    EntityType.TEAM: TOPIC_TEAM_EVENTS,
}


class IndexEventType(str, Enum):
    """What happened to the entity an index event refers to."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    BULK_REINDEX = "BULK_REINDEX"


class Privacy(str, Enum):
    """Visibility of a task, project or team."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    TEAM = "TEAM"
    INVITE_ONLY = "INVITE_ONLY"


class ProfileVisibility(str, Enum):
    """Visibility of a user profile in people search."""

    PUBLIC = "PUBLIC"
    FRIENDS_ONLY = "FRIENDS_ONLY"
    PRIVATE = "PRIVATE"


class SearchScope(str, Enum):
    """Entity selector for quick, unified and autocomplete search."""

    ALL = "all"
    TASKS = "tasks"
    PROJECTS = "projects"
    USERS = "users"
    TEAMS = "teams"

    def entity_types(self) -> list[EntityType]:
        """Entity types covered by this scope, in display order."""
        if self is SearchScope.ALL:
            return list(EntityType)
        return [_SCOPE_ENTITY[self]]


_SCOPE_ENTITY: dict[SearchScope, EntityType] = {
    SearchScope.TASKS: EntityType.TASK,
    SearchScope.PROJECTS: EntityType.PROJECT,
    SearchScope.USERS: EntityType.USER,
    SearchScope.TEAMS: EntityType.TEAM,
}


class FeedOrdering(str, Enum):
    """Ordering policy applied to composed result content."""

    NEWEST = "newest"
    TRENDING = "trending"
    PINNED_FIRST = "pinned_first"


class EventOutcome(str, Enum):
    """Result of handling one index event."""

    INDEXED = "indexed"
    DELETED = "deleted"
    REINDEXED = "reindexed"
    SKIPPED = "skipped"
    FAILED = "failed"
