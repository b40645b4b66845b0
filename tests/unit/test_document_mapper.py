"""Projection of source entities into search documents."""

from datetime import UTC, date, datetime

import pytest

from factories import project, task, team, user, user_ref
from tasksearch.application.dtos.documents import TaskSearchDocument
from tasksearch.application.services.document_mapper import (
    entity_type_of,
    map_project,
    map_task,
    map_team,
    map_user,
    to_document,
)
from tasksearch.domain.entities import TaskEntity
from tasksearch.domain.enums import EntityType
from tasksearch.domain.exceptions import DocumentMappingException


def test_map_task_resolves_authorization_fields() -> None:
    """Creator and primary assignee ids are set; every assignee is visible."""
    doc = map_task(task(task_id=10, creator_id=1, assignee_ids=(2, 3, 2)))
    assert doc.id == "10"
    assert doc.creator_id == 1
    assert doc.creator_name == "user1@example.com"
    assert doc.assignee_id == 2
    assert doc.visible_to_user_ids == [2, 3]


def test_map_task_skips_null_assignees() -> None:
    entity = TaskEntity(
        id=1, title="t", creator=user_ref(1), assignees=(None, user_ref(4))
    )
    doc = map_task(entity)
    assert doc.assignee_id == 4
    assert doc.visible_to_user_ids == [4]


def test_map_task_without_assignees() -> None:
    doc = map_task(task(assignee_ids=()))
    assert doc.assignee_id is None
    assert doc.visible_to_user_ids == []


def test_map_task_without_creator_raises() -> None:
    with pytest.raises(DocumentMappingException):
        map_task(TaskEntity(id=1, title="orphan"))


def test_map_project_completion_and_members() -> None:
    doc = map_project(
        project(
            owner_id=1,
            member_ids=(2, 3),
            total_tasks=8,
            completed_tasks=2,
            start_date=date(2025, 2, 1),
        )
    )
    assert doc.owner_id == 1
    assert doc.member_ids == [2, 3]
    assert doc.visible_to_user_ids == [1, 2, 3]
    assert doc.completion_percentage == 25.0
    assert doc.start_date == datetime(2025, 2, 1, tzinfo=UTC)


def test_map_project_with_no_tasks_is_zero_percent() -> None:
    assert map_project(project(total_tasks=0)).completion_percentage == 0.0


def test_map_user_full_name_and_connections() -> None:
    doc = map_user(
        user(
            user_id=5,
            first_name="Grace",
            last_name="Hopper",
            friend_ids=(1, 2, 2),
            teams=((7, "Compilers"),),
        )
    )
    assert doc.user_id == 5
    assert doc.full_name == "Grace Hopper"
    assert doc.friend_ids == [1, 2]
    assert doc.connections_count == 2
    assert doc.team_ids == [7]
    assert doc.team_names == ["Compilers"]


def test_map_team_leader_is_creator() -> None:
    doc = map_team(team(leader_id=9, member_ids=(9, 10)))
    assert doc.leader_id == 9
    assert doc.creator_id == 9
    assert doc.member_count == 2
    assert doc.visible_to_user_ids == [9, 10]


def test_map_team_without_leader() -> None:
    doc = map_team(team(leader_id=None, member_ids=(3,)))
    assert doc.leader_id is None
    assert doc.visible_to_user_ids == [3]


def test_to_document_dispatches_on_entity_type() -> None:
    assert isinstance(to_document(task()), TaskSearchDocument)
    assert entity_type_of(team()) is EntityType.TEAM
    with pytest.raises(TypeError):
        to_document("not an entity")  # type: ignore[arg-type]


def test_document_source_uses_camel_case() -> None:
    source = map_task(task(task_id=3, creator_id=1, assignee_ids=(2,))).to_source()
    assert source["creatorId"] == 1
    assert source["visibleToUserIds"] == [2]
    assert source["schemaVersion"] == 1
    assert "creator_id" not in source
