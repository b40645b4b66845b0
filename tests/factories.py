"""Builders for source entities and bearer tokens used across tests."""

from datetime import UTC, datetime, timedelta

from jose import jwt

from tasksearch.core.config import get_settings
from tasksearch.domain.entities import (
    ProjectEntity,
    TaskEntity,
    TeamEntity,
    UserEntity,
    UserRef,
)

CREATED = datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


def user_ref(user_id: int, email: str | None = None) -> UserRef:
    return UserRef(id=user_id, email=email or f"user{user_id}@example.com")


def task(
    task_id: int = 1,
    title: str = "Write report",
    creator_id: int = 1,
    assignee_ids: tuple[int, ...] = (),
    **overrides,
) -> TaskEntity:
    return TaskEntity(
        id=task_id,
        title=title,
        creator=user_ref(creator_id),
        assignees=tuple(user_ref(a) for a in assignee_ids),
        created_at=CREATED,
        **overrides,
    )


def project(
    project_id: int = 1,
    name: str = "Apollo",
    owner_id: int = 1,
    member_ids: tuple[int, ...] = (),
    privacy: str | None = "PRIVATE",
    **overrides,
) -> ProjectEntity:
    return ProjectEntity(
        id=project_id,
        name=name,
        owner=user_ref(owner_id),
        members=tuple(user_ref(m) for m in member_ids),
        privacy=privacy,
        created_at=CREATED,
        **overrides,
    )


def user(
    user_id: int = 1,
    first_name: str = "Ada",
    last_name: str = "Lovelace",
    email: str | None = None,
    **overrides,
) -> UserEntity:
    return UserEntity(
        id=user_id,
        email=email or f"user{user_id}@example.com",
        first_name=first_name,
        last_name=last_name,
        created_at=CREATED,
        **overrides,
    )


def team(
    team_id: int = 1,
    name: str = "Platform",
    leader_id: int | None = 1,
    member_ids: tuple[int, ...] = (),
    privacy: str | None = "PUBLIC",
    **overrides,
) -> TeamEntity:
    return TeamEntity(
        id=team_id,
        name=name,
        leader=user_ref(leader_id) if leader_id is not None else None,
        members=tuple(user_ref(m) for m in member_ids),
        privacy=privacy,
        created_at=CREATED,
        **overrides,
    )


def make_token(user_id: int | str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Bearer token signed with the test SECRET_KEY."""
    settings = get_settings()
    return jwt.encode(
        {"sub": str(user_id), "exp": datetime.now(UTC) + expires_in},
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}
