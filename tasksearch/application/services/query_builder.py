"""Authorization-aware query construction per entity type.

Every query is the conjunction of an optional text clause and an access
clause derived from the requesting user id. The access clause is always
placed in filter context and is never taken from the caller. When the
user id is unknown the access clause keeps only public documents (or
nothing, for tasks).
"""

from __future__ import annotations

from datetime import datetime

from tasksearch.application.services.query_dsl import (
    Bool,
    Match,
    MatchNone,
    MultiMatch,
    Query,
    Range,
    Term,
    any_of,
)
from tasksearch.domain.enums import EntityType, Privacy, ProfileVisibility

FUZZY = "AUTO"

TASK_TEXT_FIELDS: tuple[tuple[str, float], ...] = (
    ("title", 2.0),
    ("description", 1.0),
    ("creatorName", 1.0),
    ("projectName", 1.0),
    ("tags", 1.0),
)
PROJECT_TEXT_FIELDS: tuple[tuple[str, float], ...] = (
    ("name", 2.0),
    ("description", 1.5),
    ("ownerName", 1.0),
    ("tags", 1.0),
)
TEAM_TEXT_FIELDS: tuple[tuple[str, float], ...] = (
    ("name", 2.0),
    ("description", 1.5),
    ("leaderName", 1.0),
    ("department", 1.0),
    ("memberNames", 1.0),
)

# Field each entity type is labelled by; used for prefix matching
LABEL_FIELDS: dict[EntityType, str] = {
    EntityType.TASK: "title",
    EntityType.PROJECT: "name",
    EntityType.USER: "fullName",
    EntityType.TEAM: "name",
}

_NOT_PRIVATE = Bool(must_not=(Term("privacy", Privacy.PRIVATE.value),))


def is_email_shaped(term: str) -> bool:
    """True when the term looks like an email address."""
    return "@" in term and "." in term


def _combine(text: Query | None, *filters: Query) -> Query:
    if any(isinstance(f, MatchNone) for f in filters):
        return MatchNone()
    return Bool(must=(text,) if text is not None else (), filter=tuple(filters))


def _with_prefix(entity_type: EntityType, term: str, text: Query) -> Query:
    return any_of(Match(LABEL_FIELDS[entity_type], term, boost=3.0, prefix=True), text)


# ---- Access clauses ----


def task_access_clause(user_id: int | None) -> Query:
    """Creator, primary assignee or any assignee. Tasks are never public."""
    if user_id is None:
        return MatchNone()
    return any_of(
        Term("creatorId", user_id),
        Term("assigneeId", user_id),
        Term("visibleToUserIds", user_id),
    )


def project_access_clause(user_id: int | None, *, owned_only: bool = False) -> Query:
    """Owner, member, or any non-private project."""
    if user_id is None:
        return MatchNone() if owned_only else _NOT_PRIVATE
    owned = (Term("ownerId", user_id), Term("memberIds", user_id))
    if owned_only:
        return any_of(*owned)
    return any_of(*owned, _NOT_PRIVATE)


def team_access_clause(user_id: int | None) -> Query:
    """Leader, member, or any non-private team."""
    if user_id is None:
        return _NOT_PRIVATE
    return any_of(
        Term("creatorId", user_id),
        Term("leaderId", user_id),
        Term("memberIds", user_id),
        _NOT_PRIVATE,
    )


def user_visibility_clause(user_id: int | None) -> Query:
    """Active, searchable profiles; private profiles only to their owner."""
    hidden: tuple[Query, ...] = (
        Term("isDeactivated", True),
        Term("searchable", False),
    )
    not_private = Bool(
        must_not=(Term("profileVisibility", ProfileVisibility.PRIVATE.value),)
    )
    if user_id is None:
        return Bool(must_not=hidden, filter=(not_private,))
    return Bool(
        must_not=hidden,
        filter=(any_of(Term("userId", user_id), not_private),),
    )


# ---- Text clauses ----


def task_text_clause(term: str) -> Query:
    return MultiMatch(term, TASK_TEXT_FIELDS, fuzziness=FUZZY)


def project_text_clause(term: str) -> Query:
    return MultiMatch(term, PROJECT_TEXT_FIELDS, fuzziness=FUZZY)


def team_text_clause(term: str) -> Query:
    return MultiMatch(term, TEAM_TEXT_FIELDS, fuzziness=FUZZY)


def user_text_clause(term: str) -> Query:
    return any_of(
        Match("fullName", term, boost=2.0, fuzziness=FUZZY),
        Match("firstName", term, boost=1.5, fuzziness=FUZZY),
        Match("lastName", term, boost=1.5, fuzziness=FUZZY),
        Match("username", term, fuzziness=FUZZY),
        Match("email", term),
        Match("jobTitle", term),
        Match("department", term),
        Match("skills", term),
    )


def user_email_clause(term: str) -> Query:
    """Exact or near-exact email match, tried before fuzzy matching."""
    return any_of(
        Term("email.keyword", term, boost=10.0),
        Term("email.keyword", term.lower(), boost=8.0),
        Match("email", term, boost=5.0),
    )


# ---- Full queries ----


def task_query(term: str, user_id: int | None, *, prefix: bool = False) -> Query:
    text = task_text_clause(term) if term else None
    if text is not None and prefix:
        text = _with_prefix(EntityType.TASK, term, text)
    return _combine(text, task_access_clause(user_id))


def overdue_tasks_query(user_id: int | None, now: datetime) -> Query:
    """Accessible tasks past their due date and not completed."""
    return _combine(
        None,
        task_access_clause(user_id),
        Range("dueDate", lt=now),
        Bool(must_not=(Term("isCompleted", True),)),
    )


def project_query(
    term: str,
    user_id: int | None,
    *,
    prefix: bool = False,
    owned_only: bool = False,
) -> Query:
    text = project_text_clause(term) if term else None
    if text is not None and prefix:
        text = _with_prefix(EntityType.PROJECT, term, text)
    return _combine(text, project_access_clause(user_id, owned_only=owned_only))


def team_query(term: str, user_id: int | None, *, prefix: bool = False) -> Query:
    text = team_text_clause(term) if term else None
    if text is not None and prefix:
        text = _with_prefix(EntityType.TEAM, term, text)
    return _combine(text, team_access_clause(user_id))


def joinable_teams_query(term: str, user_id: int | None) -> Query:
    """Non-private, searchable teams the user neither leads nor belongs to."""
    text = team_text_clause(term) if term else None
    excluded: tuple[Query, ...] = (Term("searchable", False),)
    if user_id is not None:
        excluded += (Term("leaderId", user_id), Term("memberIds", user_id))
    return _combine(text, _NOT_PRIVATE, Bool(must_not=excluded))


def user_query(
    term: str,
    user_id: int | None,
    *,
    prefix: bool = False,
    email_exact: bool = False,
) -> Query:
    """People search.

    email_exact=True builds the exact email branch; callers fall back to
    the fuzzy query when it finds nothing.
    """
    if not term:
        text = None
    elif email_exact:
        text = user_email_clause(term)
    else:
        text = user_text_clause(term)
        if prefix:
            text = _with_prefix(EntityType.USER, term, text)
    return _combine(text, user_visibility_clause(user_id))


def user_by_email_query(email: str, user_id: int | None) -> Query:
    """Single user by exact email, still subject to visibility."""
    return _combine(
        any_of(Term("email.keyword", email), Term("email.keyword", email.lower())),
        user_visibility_clause(user_id),
    )


def build_query(
    entity_type: EntityType,
    term: str,
    user_id: int | None,
    *,
    prefix: bool = False,
) -> Query:
    """Default query for an entity type (fuzzy text plus access clause)."""
    term = term.strip()
    if entity_type is EntityType.TASK:
        return task_query(term, user_id, prefix=prefix)
    if entity_type is EntityType.PROJECT:
        return project_query(term, user_id, prefix=prefix)
    if entity_type is EntityType.TEAM:
        return team_query(term, user_id, prefix=prefix)
    return user_query(term, user_id, prefix=prefix)
