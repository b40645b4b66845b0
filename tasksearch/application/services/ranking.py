"""Ordering policies for feed-style result content.

- newest: created_at descending, undated documents last.
- trending: likes + 2 * comments descending, ties broken by newest.
- pinned_first: pinned documents first, newest within each partition.

All sorts are stable, so documents that compare equal keep the order
the engine returned them in.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TypeVar

from tasksearch.application.dtos.documents import SearchDocument
from tasksearch.domain.enums import FeedOrdering
from tasksearch.shared.utils.datetime import ensure_utc

D = TypeVar("D", bound=SearchDocument)

COMMENT_WEIGHT = 2


def _created_ts(doc: SearchDocument) -> float | None:
    created: datetime | None = ensure_utc(doc.created_at)
    return created.timestamp() if created is not None else None


def _newest_key(doc: SearchDocument) -> tuple[int, float]:
    ts = _created_ts(doc)
    # Undated sorts after every dated document
    return (0, -ts) if ts is not None else (1, 0.0)


def engagement_score(doc: SearchDocument) -> int:
    """likes + 2 * comments; documents without counters score 0."""
    likes = getattr(doc, "like_count", 0) or 0
    comments = getattr(doc, "comment_count", 0) or 0
    return likes + COMMENT_WEIGHT * comments


def rank_newest(docs: Sequence[D]) -> list[D]:
    return sorted(docs, key=_newest_key)


def rank_trending(docs: Sequence[D]) -> list[D]:
    return sorted(docs, key=lambda d: (-engagement_score(d), _newest_key(d)))


def rank_pinned_first(docs: Sequence[D]) -> list[D]:
    return sorted(
        docs,
        key=lambda d: (0 if getattr(d, "is_pinned", False) else 1, _newest_key(d)),
    )


_POLICIES = {
    FeedOrdering.NEWEST: rank_newest,
    FeedOrdering.TRENDING: rank_trending,
    FeedOrdering.PINNED_FIRST: rank_pinned_first,
}


def rank(docs: Sequence[D], ordering: FeedOrdering = FeedOrdering.NEWEST) -> list[D]:
    """Apply the named ordering policy."""
    return _POLICIES[ordering](docs)
