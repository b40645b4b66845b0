"""Search document models (one per entity type).

These are both the shape written to the index and the schema used to read
hits back. Reading is tolerant: a missing, null or wrong-typed field falls
back to that field's typed default instead of failing the whole hit, so
one bad document cannot break a results page.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic.alias_generators import to_camel

from tasksearch.core.constants import SEARCH_DOCUMENT_SCHEMA_VERSION


class SearchDocument(BaseModel):
    """Base for all search documents (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = ""
    schema_version: int = SEARCH_DOCUMENT_SCHEMA_VERSION
    created_at: datetime | None = None

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_invalid(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            field = cls.model_fields[info.field_name]
            return field.get_default(call_default_factory=True)

    @property
    def label(self) -> str | None:
        """Human label used for autocomplete suggestions."""
        return None

    def to_source(self) -> dict[str, Any]:
        """Serialize to the index `_source` body."""
        return self.model_dump(mode="json", by_alias=True)


class TaskSearchDocument(SearchDocument):
    """Task projection with its authorization fields."""

    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    creator_id: int | None = None
    creator_name: str | None = None
    assignee_id: int | None = None
    assignee_name: str | None = None
    visible_to_user_ids: list[int] = []
    project_id: int | None = None
    project_name: str | None = None
    team_id: int | None = None
    tags: list[str] = []
    privacy: str | None = None
    due_date: datetime | None = None
    updated_at: datetime | None = None
    is_completed: bool = False
    is_pinned: bool = False
    like_count: int = 0
    comment_count: int = 0

    @property
    def label(self) -> str | None:
        return self.title


class ProjectSearchDocument(SearchDocument):
    """Project projection with owner and member ids."""

    name: str | None = None
    description: str | None = None
    status: str | None = None
    privacy: str | None = None
    owner_id: int | None = None
    owner_name: str | None = None
    member_ids: list[int] = []
    member_names: list[str] = []
    visible_to_user_ids: list[int] = []
    tags: list[str] = []
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = True
    total_tasks: int = 0
    completed_tasks: int = 0
    completion_percentage: float = 0.0

    @property
    def label(self) -> str | None:
        return self.name


class UserSearchDocument(SearchDocument):
    """User profile projection with visibility flags."""

    user_id: int | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    username: str | None = None
    job_title: str | None = None
    department: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    skills: list[str] = []
    location: str | None = None
    company: str | None = None
    is_active: bool = True
    is_online: bool = False
    is_premium: bool = False
    is_deactivated: bool = False
    premium_plan_type: str | None = None
    profile_visibility: str | None = None
    searchable: bool = True
    friend_ids: list[int] = []
    team_ids: list[int] = []
    team_names: list[str] = []
    connections_count: int = 0
    completed_tasks_count: int = 0
    last_login_at: datetime | None = None

    @property
    def label(self) -> str | None:
        return self.full_name or self.email


class TeamSearchDocument(SearchDocument):
    """Team projection with leader and member ids."""

    name: str | None = None
    description: str | None = None
    leader_id: int | None = None
    leader_name: str | None = None
    # Same as leader_id; lets team access checks share the creator clause
    creator_id: int | None = None
    member_ids: list[int] = []
    member_names: list[str] = []
    member_count: int = 0
    visible_to_user_ids: list[int] = []
    privacy: str | None = None
    searchable: bool = True
    team_type: str | None = None
    department: str | None = None
    organization: str | None = None
    tags: list[str] = []
    is_active: bool = True
    active_projects_count: int = 0
    total_tasks_count: int = 0
    completed_tasks_count: int = 0

    @property
    def label(self) -> str | None:
        return self.name
