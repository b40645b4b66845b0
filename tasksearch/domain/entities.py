"""Read-only views of the system of record.

These mirror what the source read API returns for each entity type: the
entity itself plus the relations needed to resolve authorization fields
(creator, assignees, owner, members, leader). They are never written
back; the search index is a projection of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class UserRef:
    """Reference to a user as embedded in another entity."""

    id: int
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def display_name(self) -> str | None:
        """Full name when known, else email."""
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.email


@dataclass(frozen=True)
class TaskEntity:
    """Task with creator, assignees and project relations."""

    id: int
    title: str
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    creator: UserRef | None = None
    # Order matters: the first assignee is the primary one
    assignees: tuple[UserRef | None, ...] = ()
    project_id: int | None = None
    project_name: str | None = None
    team_id: int | None = None
    tags: tuple[str, ...] = ()
    privacy: str | None = None
    due_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_completed: bool = False
    is_pinned: bool = False
    like_count: int = 0
    comment_count: int = 0


@dataclass(frozen=True)
class ProjectEntity:
    """Project with owner and member relations."""

    id: int
    name: str
    description: str | None = None
    status: str | None = None
    privacy: str | None = None
    owner: UserRef | None = None
    members: tuple[UserRef, ...] = ()
    tags: tuple[str, ...] = ()
    start_date: date | None = None
    end_date: date | None = None
    created_at: datetime | None = None
    is_active: bool = True
    total_tasks: int = 0
    completed_tasks: int = 0


@dataclass(frozen=True)
class UserEntity:
    """User profile with visibility flags and social relations."""

    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    job_title: str | None = None
    department: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    skills: tuple[str, ...] = ()
    location: str | None = None
    company: str | None = None
    is_active: bool = True
    is_online: bool = False
    is_premium: bool = False
    is_deactivated: bool = False
    premium_plan_type: str | None = None
    profile_visibility: str | None = None
    searchable: bool = True
    friend_ids: tuple[int, ...] = ()
    # (team_id, team_name) pairs
    teams: tuple[tuple[int, str], ...] = ()
    completed_tasks_count: int = 0
    created_at: datetime | None = None
    last_login_at: datetime | None = None


@dataclass(frozen=True)
class TeamEntity:
    """Team with leader and member relations."""

    id: int
    name: str
    description: str | None = None
    leader: UserRef | None = None
    members: tuple[UserRef, ...] = ()
    privacy: str | None = None
    searchable: bool = True
    team_type: str | None = None
    department: str | None = None
    organization_name: str | None = None
    tags: tuple[str, ...] = ()
    is_active: bool = True
    active_projects_count: int = 0
    total_tasks_count: int = 0
    completed_tasks_count: int = 0
    created_at: datetime | None = None


Entity = TaskEntity | ProjectEntity | UserEntity | TeamEntity
