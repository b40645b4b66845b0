"""Index mappings per entity type (versioned with the document schema).

Id and authorization fields are exact-match (long/keyword) so term
filters on them behave as set membership; text fields carry a keyword
sub-field where exact matching is also needed.
"""

from typing import Any

from tasksearch.core.constants import SEARCH_DOCUMENT_SCHEMA_VERSION
from tasksearch.domain.enums import EntityType

_TEXT = {"type": "text"}
_TEXT_KW = {"type": "text", "fields": {"keyword": {"type": "keyword", "ignore_above": 256}}}
_KEYWORD = {"type": "keyword"}
_LONG = {"type": "long"}
_INT = {"type": "integer"}
_BOOL = {"type": "boolean"}
_DATE = {"type": "date"}
_FLOAT = {"type": "float"}

_COMMON: dict[str, Any] = {
    "id": _KEYWORD,
    "schemaVersion": _INT,
    "createdAt": _DATE,
}

_TASK: dict[str, Any] = {
    "title": _TEXT_KW,
    "description": _TEXT,
    "status": _KEYWORD,
    "priority": _KEYWORD,
    "creatorId": _LONG,
    "creatorName": _TEXT_KW,
    "assigneeId": _LONG,
    "assigneeName": _TEXT_KW,
    "visibleToUserIds": _LONG,
    "projectId": _LONG,
    "projectName": _TEXT_KW,
    "teamId": _LONG,
    "tags": _TEXT_KW,
    "privacy": _KEYWORD,
    "dueDate": _DATE,
    "updatedAt": _DATE,
    "isCompleted": _BOOL,
    "isPinned": _BOOL,
    "likeCount": _INT,
    "commentCount": _INT,
}

_PROJECT: dict[str, Any] = {
    "name": _TEXT_KW,
    "description": _TEXT,
    "status": _KEYWORD,
    "privacy": _KEYWORD,
    "ownerId": _LONG,
    "ownerName": _TEXT_KW,
    "memberIds": _LONG,
    "memberNames": _TEXT,
    "visibleToUserIds": _LONG,
    "tags": _TEXT_KW,
    "startDate": _DATE,
    "endDate": _DATE,
    "isActive": _BOOL,
    "totalTasks": _INT,
    "completedTasks": _INT,
    "completionPercentage": _FLOAT,
}

_USER: dict[str, Any] = {
    "userId": _LONG,
    "email": _TEXT_KW,
    "firstName": _TEXT,
    "lastName": _TEXT,
    "fullName": _TEXT_KW,
    "username": _TEXT_KW,
    "jobTitle": _TEXT,
    "department": _TEXT_KW,
    "bio": _TEXT,
    "avatarUrl": {"type": "keyword", "index": False},
    "skills": _TEXT_KW,
    "location": _TEXT,
    "company": _TEXT,
    "isActive": _BOOL,
    "isOnline": _BOOL,
    "isPremium": _BOOL,
    "isDeactivated": _BOOL,
    "premiumPlanType": _KEYWORD,
    "profileVisibility": _KEYWORD,
    "searchable": _BOOL,
    "friendIds": _LONG,
    "teamIds": _LONG,
    "teamNames": _TEXT,
    "connectionsCount": _INT,
    "completedTasksCount": _INT,
    "lastLoginAt": _DATE,
}

_TEAM: dict[str, Any] = {
    "name": _TEXT_KW,
    "description": _TEXT,
    "leaderId": _LONG,
    "leaderName": _TEXT_KW,
    "creatorId": _LONG,
    "memberIds": _LONG,
    "memberNames": _TEXT,
    "memberCount": _INT,
    "visibleToUserIds": _LONG,
    "privacy": _KEYWORD,
    "searchable": _BOOL,
    "teamType": _KEYWORD,
    "department": _TEXT_KW,
    "organization": _TEXT_KW,
    "tags": _TEXT_KW,
    "isActive": _BOOL,
    "activeProjectsCount": _INT,
    "totalTasksCount": _INT,
    "completedTasksCount": _INT,
}

_PROPERTIES: dict[EntityType, dict[str, Any]] = {
    EntityType.TASK: _TASK,
    EntityType.PROJECT: _PROJECT,
    EntityType.USER: _USER,
    EntityType.TEAM: _TEAM,
}


def mappings_for(entity_type: EntityType) -> dict[str, Any]:
    """Index creation body (mappings only) for an entity type."""
    return {
        "mappings": {
            "_meta": {"schemaVersion": SEARCH_DOCUMENT_SCHEMA_VERSION},
            "dynamic": False,
            "properties": {**_COMMON, **_PROPERTIES[entity_type]},
        }
    }
