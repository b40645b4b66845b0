"""Domain layer: source entity views, index events, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from tasksearch.domain.entities import (
    Entity,
    ProjectEntity,
    TaskEntity,
    TeamEntity,
    UserEntity,
    UserRef,
)
from tasksearch.domain.enums import (
    EntityType,
    EventOutcome,
    FeedOrdering,
    IndexEventType,
    Privacy,
    ProfileVisibility,
    SearchScope,
)
from tasksearch.domain.events import IndexEvent
from tasksearch.domain.exceptions import (
    DocumentMappingException,
    InvalidIndexEventException,
    SearchBackendException,
    SearchUnavailableException,
    TaskSearchException,
    ValidationException,
)

__all__ = [
    # Entities
    "Entity",
    "ProjectEntity",
    "TaskEntity",
    "TeamEntity",
    "UserEntity",
    "UserRef",
    # Enums
    "EntityType",
    "EventOutcome",
    "FeedOrdering",
    "IndexEventType",
    "Privacy",
    "ProfileVisibility",
    "SearchScope",
    # Events
    "IndexEvent",
    # Exceptions
    "DocumentMappingException",
    "InvalidIndexEventException",
    "SearchBackendException",
    "SearchUnavailableException",
    "TaskSearchException",
    "ValidationException",
]
