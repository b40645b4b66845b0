"""Source read API payloads (camelCase JSON) and their conversion to entities."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tasksearch.domain.entities import (
    ProjectEntity,
    TaskEntity,
    TeamEntity,
    UserEntity,
    UserRef,
)


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class UserRefPayload(_Payload):
    id: int
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    def to_ref(self) -> UserRef:
        return UserRef(self.id, self.email, self.first_name, self.last_name)


class NamedRefPayload(_Payload):
    id: int
    name: str | None = None


def _ref(payload: UserRefPayload | None) -> UserRef | None:
    return payload.to_ref() if payload is not None else None


class TaskPayload(_Payload):
    id: int
    title: str
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    creator: UserRefPayload | None = None
    assignees: list[UserRefPayload | None] = Field(default_factory=list)
    project: NamedRefPayload | None = None
    team_id: int | None = None
    tags: list[str] = Field(default_factory=list)
    privacy: str | None = None
    due_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_completed: bool = False
    is_pinned: bool = False
    like_count: int = 0
    comment_count: int = 0

    def to_entity(self) -> TaskEntity:
        return TaskEntity(
            id=self.id,
            title=self.title,
            description=self.description,
            status=self.status,
            priority=self.priority,
            creator=_ref(self.creator),
            assignees=tuple(_ref(a) for a in self.assignees),
            project_id=self.project.id if self.project else None,
            project_name=self.project.name if self.project else None,
            team_id=self.team_id,
            tags=tuple(self.tags),
            privacy=self.privacy,
            due_date=self.due_date,
            created_at=self.created_at,
            updated_at=self.updated_at,
            is_completed=self.is_completed,
            is_pinned=self.is_pinned,
            like_count=self.like_count,
            comment_count=self.comment_count,
        )


class ProjectPayload(_Payload):
    id: int
    name: str
    description: str | None = None
    status: str | None = None
    privacy: str | None = None
    owner: UserRefPayload | None = None
    members: list[UserRefPayload] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None
    created_at: datetime | None = None
    is_active: bool = True
    total_tasks: int = 0
    completed_tasks: int = 0

    def to_entity(self) -> ProjectEntity:
        return ProjectEntity(
            id=self.id,
            name=self.name,
            description=self.description,
            status=self.status,
            privacy=self.privacy,
            owner=_ref(self.owner),
            members=tuple(m.to_ref() for m in self.members),
            tags=tuple(self.tags),
            start_date=self.start_date,
            end_date=self.end_date,
            created_at=self.created_at,
            is_active=self.is_active,
            total_tasks=self.total_tasks,
            completed_tasks=self.completed_tasks,
        )


class UserPayload(_Payload):
    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    job_title: str | None = None
    department: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    skills: list[str] = Field(default_factory=list)
    location: str | None = None
    company: str | None = None
    is_active: bool = True
    is_online: bool = False
    is_premium: bool = False
    deactivated: bool = False
    premium_plan_type: str | None = None
    profile_visibility: str | None = None
    searchable: bool = True
    friend_ids: list[int] = Field(default_factory=list)
    teams: list[NamedRefPayload] = Field(default_factory=list)
    completed_tasks_count: int = 0
    created_at: datetime | None = None
    last_login_at: datetime | None = None

    def to_entity(self) -> UserEntity:
        return UserEntity(
            id=self.id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            username=self.username,
            job_title=self.job_title,
            department=self.department,
            bio=self.bio,
            avatar_url=self.avatar_url,
            skills=tuple(self.skills),
            location=self.location,
            company=self.company,
            is_active=self.is_active,
            is_online=self.is_online,
            is_premium=self.is_premium,
            is_deactivated=self.deactivated,
            premium_plan_type=self.premium_plan_type,
            profile_visibility=self.profile_visibility,
            searchable=self.searchable,
            friend_ids=tuple(self.friend_ids),
            teams=tuple((t.id, t.name or "") for t in self.teams),
            completed_tasks_count=self.completed_tasks_count,
            created_at=self.created_at,
            last_login_at=self.last_login_at,
        )


class TeamPayload(_Payload):
    id: int
    name: str
    description: str | None = None
    leader: UserRefPayload | None = None
    members: list[UserRefPayload] = Field(default_factory=list)
    privacy: str | None = None
    searchable: bool = True
    team_type: str | None = None
    department: str | None = None
    organization: NamedRefPayload | None = None
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    active_projects_count: int = 0
    total_tasks_count: int = 0
    completed_tasks_count: int = 0
    created_at: datetime | None = None

    def to_entity(self) -> TeamEntity:
        return TeamEntity(
            id=self.id,
            name=self.name,
            description=self.description,
            leader=_ref(self.leader),
            members=tuple(m.to_ref() for m in self.members),
            privacy=self.privacy,
            searchable=self.searchable,
            team_type=self.team_type,
            department=self.department,
            organization_name=self.organization.name if self.organization else None,
            tags=tuple(self.tags),
            is_active=self.is_active,
            active_projects_count=self.active_projects_count,
            total_tasks_count=self.total_tasks_count,
            completed_tasks_count=self.completed_tasks_count,
            created_at=self.created_at,
        )
