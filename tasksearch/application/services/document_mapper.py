"""Projection of source entities into search documents.

Pure functions. All authorization fields (creator/owner/leader ids and
the full list of principals allowed to see the document) are resolved
here, at index time, so queries can filter without consulting the
system of record.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime

from tasksearch.application.dtos.documents import (
    ProjectSearchDocument,
    SearchDocument,
    TaskSearchDocument,
    TeamSearchDocument,
    UserSearchDocument,
)
from tasksearch.domain.entities import (
    Entity,
    ProjectEntity,
    TaskEntity,
    TeamEntity,
    UserEntity,
    UserRef,
)
from tasksearch.domain.enums import EntityType
from tasksearch.domain.exceptions import DocumentMappingException
from tasksearch.shared.utils.datetime import ensure_utc


def _distinct_ids(ids: Iterable[int | None]) -> list[int]:
    """Drop nulls and duplicates, keep first-seen order."""
    seen: dict[int, None] = {}
    for value in ids:
        if value is not None:
            seen.setdefault(value, None)
    return list(seen)


def _start_of_day(value: date | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


def _names(users: Iterable[UserRef]) -> list[str]:
    return [name for name in (u.display_name for u in users) if name]


def entity_type_of(entity: Entity) -> EntityType:
    if isinstance(entity, TaskEntity):
        return EntityType.TASK
    if isinstance(entity, ProjectEntity):
        return EntityType.PROJECT
    if isinstance(entity, UserEntity):
        return EntityType.USER
    if isinstance(entity, TeamEntity):
        return EntityType.TEAM
    raise TypeError(f"Not a searchable entity: {type(entity).__name__}")


def map_task(task: TaskEntity) -> TaskSearchDocument:
    """Task document; every assignee id lands in visible_to_user_ids.

    Raises:
        DocumentMappingException: If the task has no creator.
    """
    if task.creator is None:
        raise DocumentMappingException("TASK", str(task.id), "task has no creator")
    assignees = [a for a in task.assignees if a is not None]
    primary = assignees[0] if assignees else None
    return TaskSearchDocument(
        id=str(task.id),
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        creator_id=task.creator.id,
        creator_name=task.creator.email,
        assignee_id=primary.id if primary else None,
        assignee_name=primary.email if primary else None,
        visible_to_user_ids=_distinct_ids(a.id for a in assignees),
        project_id=task.project_id,
        project_name=task.project_name,
        team_id=task.team_id,
        tags=list(task.tags),
        privacy=task.privacy,
        due_date=ensure_utc(task.due_date),
        created_at=ensure_utc(task.created_at),
        updated_at=ensure_utc(task.updated_at),
        is_completed=task.is_completed,
        is_pinned=task.is_pinned,
        like_count=task.like_count,
        comment_count=task.comment_count,
    )


def map_project(project: ProjectEntity) -> ProjectSearchDocument:
    """Project document with owner and member ids.

    Raises:
        DocumentMappingException: If the project has no owner.
    """
    if project.owner is None:
        raise DocumentMappingException(
            "PROJECT", str(project.id), "project has no owner"
        )
    member_ids = _distinct_ids(m.id for m in project.members)
    total = project.total_tasks
    completion = round(project.completed_tasks * 100.0 / total, 2) if total else 0.0
    return ProjectSearchDocument(
        id=str(project.id),
        name=project.name,
        description=project.description,
        status=project.status,
        privacy=project.privacy,
        owner_id=project.owner.id,
        owner_name=project.owner.display_name,
        member_ids=member_ids,
        member_names=_names(project.members),
        visible_to_user_ids=_distinct_ids([project.owner.id, *member_ids]),
        tags=list(project.tags),
        start_date=_start_of_day(project.start_date),
        end_date=_start_of_day(project.end_date),
        created_at=ensure_utc(project.created_at),
        is_active=project.is_active,
        total_tasks=total,
        completed_tasks=project.completed_tasks,
        completion_percentage=completion,
    )


def map_user(user: UserEntity) -> UserSearchDocument:
    full_name = " ".join(p for p in (user.first_name, user.last_name) if p) or None
    return UserSearchDocument(
        id=str(user.id),
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=full_name,
        username=user.username,
        job_title=user.job_title,
        department=user.department,
        bio=user.bio,
        avatar_url=user.avatar_url,
        skills=list(user.skills),
        location=user.location,
        company=user.company,
        is_active=user.is_active,
        is_online=user.is_online,
        is_premium=user.is_premium,
        is_deactivated=user.is_deactivated,
        premium_plan_type=user.premium_plan_type,
        profile_visibility=user.profile_visibility,
        searchable=user.searchable,
        friend_ids=_distinct_ids(user.friend_ids),
        team_ids=[team_id for team_id, _ in user.teams],
        team_names=[name for _, name in user.teams],
        connections_count=len(set(user.friend_ids)),
        completed_tasks_count=user.completed_tasks_count,
        created_at=ensure_utc(user.created_at),
        last_login_at=ensure_utc(user.last_login_at),
    )


def map_team(team: TeamEntity) -> TeamSearchDocument:
    leader_id = team.leader.id if team.leader else None
    member_ids = _distinct_ids(m.id for m in team.members)
    return TeamSearchDocument(
        id=str(team.id),
        name=team.name,
        description=team.description,
        leader_id=leader_id,
        leader_name=team.leader.display_name if team.leader else None,
        creator_id=leader_id,
        member_ids=member_ids,
        member_names=_names(team.members),
        member_count=len(member_ids),
        visible_to_user_ids=_distinct_ids([leader_id, *member_ids]),
        privacy=team.privacy,
        searchable=team.searchable,
        team_type=team.team_type,
        department=team.department,
        organization=team.organization_name,
        tags=list(team.tags),
        is_active=team.is_active,
        active_projects_count=team.active_projects_count,
        total_tasks_count=team.total_tasks_count,
        completed_tasks_count=team.completed_tasks_count,
        created_at=ensure_utc(team.created_at),
    )


def to_document(entity: Entity) -> SearchDocument:
    """Map any source entity to its search document."""
    if isinstance(entity, TaskEntity):
        return map_task(entity)
    if isinstance(entity, ProjectEntity):
        return map_project(entity)
    if isinstance(entity, UserEntity):
        return map_user(entity)
    if isinstance(entity, TeamEntity):
        return map_team(entity)
    raise TypeError(f"Not a searchable entity: {type(entity).__name__}")
