"""In-process search engine evaluating the typed query DSL.

Selected with SEARCH_BACKEND=memory for local runs and tests. Writes are
visible to the next search immediately, which makes it the "index now"
hook for consistency tests. Matching is a simplified version of the real
engine's semantics: lowercase word tokens, OR between query tokens,
bounded edit distance for fuzzy matches, bool clauses with the same
must/should/filter/must_not rules. Responses have the real engine's
shape so the same parser reads both.
"""

from __future__ import annotations

import asyncio
import copy
import re
from datetime import datetime
from typing import Any

from tasksearch.application.services.query_dsl import (
    Bool,
    Exists,
    Match,
    MatchAll,
    MatchNone,
    MultiMatch,
    Query,
    Range,
    SearchRequest,
    SortField,
    Term,
)
from tasksearch.shared.utils.datetime import ensure_utc

_TOKEN = re.compile(r"\w+")


def _tokens(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [t for v in value for t in _tokens(v)]
    return _TOKEN.findall(str(value).lower())


def _field_values(doc: dict[str, Any], field: str) -> list[Any]:
    name = field.removesuffix(".keyword")
    value = doc.get(name)
    if value is None:
        return []
    if isinstance(value, list):
        return [v for v in value if v is not None]
    return [value]


def _edit_distance(a: str, b: str, limit: int) -> int:
    """Levenshtein distance, stopping early once it exceeds limit."""
    if abs(len(a) - len(b)) > limit:
        return limit + 1
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(
                min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + (ca != cb))
            )
        if min(current) > limit:
            return limit + 1
        previous = current
    return previous[-1]


def _allowed_edits(token: str, fuzziness: str | None) -> int:
    if fuzziness is None:
        return 0
    if fuzziness != "AUTO":
        return int(fuzziness)
    if len(token) <= 2:
        return 0
    if len(token) <= 5:
        return 1
    return 2


def _token_matches(query_token: str, doc_tokens: list[str], edits: int) -> bool:
    if edits == 0:
        return query_token in doc_tokens
    return any(_edit_distance(query_token, t, edits) <= edits for t in doc_tokens)


def _scalar_equals(stored: Any, value: Any) -> bool:
    if isinstance(value, bool) or isinstance(stored, bool):
        return isinstance(value, bool) and isinstance(stored, bool) and stored is value
    return stored == value


def _comparable(stored: Any, bound: Any) -> tuple[Any, Any] | None:
    if isinstance(bound, datetime):
        if isinstance(stored, str):
            try:
                stored = datetime.fromisoformat(stored)
            except ValueError:
                return None
        if not isinstance(stored, datetime):
            return None
        return ensure_utc(stored), ensure_utc(bound)
    if isinstance(stored, (int, float)) and isinstance(bound, (int, float)):
        return stored, bound
    if isinstance(stored, str) and isinstance(bound, str):
        return stored, bound
    return None


def _match_score(doc: dict[str, Any], clause: Match) -> float | None:
    doc_tokens = _tokens(_field_values(doc, clause.field))
    query_tokens = _tokens(clause.text)
    if not query_tokens or not doc_tokens:
        return None
    if clause.prefix:
        *head, last = query_tokens
        if not all(t in doc_tokens for t in head):
            return None
        if not any(t.startswith(last) for t in doc_tokens):
            return None
        return clause.boost * len(query_tokens)
    matched = sum(
        1
        for t in query_tokens
        if _token_matches(t, doc_tokens, _allowed_edits(t, clause.fuzziness))
    )
    return clause.boost * matched if matched else None


def score(doc: dict[str, Any], query: Query) -> float | None:
    """Relevance of doc for query, or None when it does not match."""
    if isinstance(query, MatchAll):
        return 1.0
    if isinstance(query, MatchNone):
        return None
    if isinstance(query, Match):
        return _match_score(doc, query)
    if isinstance(query, MultiMatch):
        best: float | None = None
        for field, boost in query.fields:
            s = _match_score(doc, Match(field, query.text, boost, query.fuzziness))
            if s is not None and (best is None or s > best):
                best = s
        return best
    if isinstance(query, Term):
        values = _field_values(doc, query.field)
        return query.boost if any(_scalar_equals(v, query.value) for v in values) else None
    if isinstance(query, Exists):
        return 1.0 if _field_values(doc, query.field) else None
    if isinstance(query, Range):
        return 1.0 if _in_range(doc, query) else None
    if isinstance(query, Bool):
        return _bool_score(doc, query)
    raise TypeError(f"Unsupported clause: {type(query).__name__}")


def _in_range(doc: dict[str, Any], clause: Range) -> bool:
    for stored in _field_values(doc, clause.field):
        ok = True
        for bound, test in (
            (clause.gt, lambda a, b: a > b),
            (clause.gte, lambda a, b: a >= b),
            (clause.lt, lambda a, b: a < b),
            (clause.lte, lambda a, b: a <= b),
        ):
            if bound is None:
                continue
            pair = _comparable(stored, bound)
            if pair is None or not test(*pair):
                ok = False
                break
        if ok:
            return True
    return False


def _bool_score(doc: dict[str, Any], clause: Bool) -> float | None:
    if any(score(doc, q) is not None for q in clause.must_not):
        return None
    if any(score(doc, q) is None for q in clause.filter):
        return None
    total = 0.0
    for q in clause.must:
        s = score(doc, q)
        if s is None:
            return None
        total += s
    should_scores = [s for s in (score(doc, q) for q in clause.should) if s is not None]
    required = clause.minimum_should_match
    if required is None:
        required = 0 if (clause.must or clause.filter) else min(1, len(clause.should))
    if len(should_scores) < required:
        return None
    total += sum(should_scores)
    return total if total > 0 else 1.0


def _sort_key(doc: dict[str, Any], sort: SortField) -> tuple[int, Any]:
    values = _field_values(doc, sort.field)
    if not values:
        return (1, 0)
    value = values[0]
    if isinstance(value, str):
        try:
            value = ensure_utc(datetime.fromisoformat(value)).timestamp()
        except ValueError:
            pass
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, (int, float)):
        return (0, -value if sort.descending else value)
    return (0, value)


class InMemorySearchEngine:
    """Dictionary-backed search engine with the ISearchEngine interface."""

    def __init__(self) -> None:
        self._indices: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    def _index(self, index: str) -> dict[str, dict[str, Any]]:
        return self._indices.setdefault(index, {})

    def get(self, index: str, doc_id: str) -> dict[str, Any] | None:
        """Stored source for an id (inspection helper)."""
        doc = self._indices.get(index, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def upsert(self, index: str, doc_id: str, source: dict[str, Any]) -> None:
        async with self._lock:
            self._index(index)[doc_id] = copy.deepcopy(source)

    async def delete(self, index: str, doc_id: str) -> bool:
        async with self._lock:
            return self._index(index).pop(doc_id, None) is not None

    async def bulk_upsert(
        self, index: str, documents: list[tuple[str, dict[str, Any]]]
    ) -> list[str]:
        async with self._lock:
            target = self._index(index)
            for doc_id, source in documents:
                target[doc_id] = copy.deepcopy(source)
        return []

    async def search(self, index: str, request: SearchRequest) -> dict[str, Any]:
        scored: list[tuple[float, str, dict[str, Any]]] = []
        for doc_id, source in list(self._index(index).items()):
            s = score(source, request.query)
            if s is not None:
                scored.append((s, doc_id, source))
        if request.sort:
            for sort in reversed(request.sort):
                scored.sort(key=lambda item, s=sort: _sort_key(item[2], s))
        else:
            scored.sort(key=lambda item: -item[0])
        window = scored[request.offset : request.offset + request.size]
        return {
            "hits": {
                "total": {"value": len(scored), "relation": "eq"},
                "hits": [
                    {"_index": index, "_id": doc_id, "_score": s, "_source": copy.deepcopy(src)}
                    for s, doc_id, src in window
                ],
            }
        }

    async def count(self, index: str) -> int:
        return len(self._index(index))

    async def ensure_index(self, index: str, mappings: dict[str, Any]) -> bool:
        if index in self._indices:
            return False
        self._indices[index] = {}
        return True

    async def refresh(self, index: str) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
