"""Typed search query clauses.

Queries are built from these immutable clause types and only turned into
the engine's JSON by to_wire() at the client boundary. Authorization
filters are therefore ordinary typed values that can be inspected and
tested, never hand-assembled dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

Scalar = Union[str, int, float, bool]


def _wire_scalar(value: Scalar | datetime) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class MatchAll:
    def to_wire(self) -> dict[str, Any]:
        return {"match_all": {}}


@dataclass(frozen=True)
class MatchNone:
    def to_wire(self) -> dict[str, Any]:
        return {"match_none": {}}


@dataclass(frozen=True)
class Match:
    """Full-text match on one field.

    prefix=True makes the last token match as a prefix (autocomplete).
    """

    field: str
    text: str
    boost: float = 1.0
    fuzziness: str | None = None
    prefix: bool = False

    def to_wire(self) -> dict[str, Any]:
        if self.prefix:
            body: dict[str, Any] = {"query": self.text}
            if self.boost != 1.0:
                body["boost"] = self.boost
            return {"match_phrase_prefix": {self.field: body}}
        body = {"query": self.text}
        if self.boost != 1.0:
            body["boost"] = self.boost
        if self.fuzziness:
            body["fuzziness"] = self.fuzziness
        return {"match": {self.field: body}}


@dataclass(frozen=True)
class MultiMatch:
    """Full-text match across several fields; weights as (field, boost)."""

    text: str
    fields: tuple[tuple[str, float], ...]
    fuzziness: str | None = None

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "query": self.text,
            "fields": [
                name if boost == 1.0 else f"{name}^{boost:g}"
                for name, boost in self.fields
            ],
            "type": "best_fields",
        }
        if self.fuzziness:
            body["fuzziness"] = self.fuzziness
        return {"multi_match": body}


@dataclass(frozen=True)
class Term:
    """Exact value on a keyword, numeric or boolean field (or list member)."""

    field: str
    value: Scalar
    boost: float = 1.0

    def to_wire(self) -> dict[str, Any]:
        if self.boost != 1.0:
            return {"term": {self.field: {"value": self.value, "boost": self.boost}}}
        return {"term": {self.field: self.value}}


@dataclass(frozen=True)
class Exists:
    field: str

    def to_wire(self) -> dict[str, Any]:
        return {"exists": {"field": self.field}}


@dataclass(frozen=True)
class Range:
    """Bounded comparison on a date or numeric field."""

    field: str
    gt: Scalar | datetime | None = None
    gte: Scalar | datetime | None = None
    lt: Scalar | datetime | None = None
    lte: Scalar | datetime | None = None

    def to_wire(self) -> dict[str, Any]:
        bounds = {
            op: _wire_scalar(value)
            for op, value in (
                ("gt", self.gt),
                ("gte", self.gte),
                ("lt", self.lt),
                ("lte", self.lte),
            )
            if value is not None
        }
        return {"range": {self.field: bounds}}


@dataclass(frozen=True)
class Bool:
    """Boolean combination of clauses.

    filter and must_not do not score; must and should do. With no must or
    filter clauses at least one should clause has to match.
    """

    must: tuple[Query, ...] = ()
    should: tuple[Query, ...] = ()
    filter: tuple[Query, ...] = ()
    must_not: tuple[Query, ...] = ()
    minimum_should_match: int | None = None

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        for key, clauses in (
            ("must", self.must),
            ("should", self.should),
            ("filter", self.filter),
            ("must_not", self.must_not),
        ):
            if clauses:
                body[key] = [clause.to_wire() for clause in clauses]
        if self.minimum_should_match is not None:
            body["minimum_should_match"] = self.minimum_should_match
        return {"bool": body}


Query = Union[MatchAll, MatchNone, Match, MultiMatch, Term, Exists, Range, Bool]


def any_of(*clauses: Query) -> Bool:
    """At least one of the clauses must match."""
    return Bool(should=tuple(clauses), minimum_should_match=1)


@dataclass(frozen=True)
class SortField:
    field: str
    descending: bool = True

    def to_wire(self) -> dict[str, Any]:
        return {
            self.field: {
                "order": "desc" if self.descending else "asc",
                "missing": "_last",
            }
        }


@dataclass(frozen=True)
class SearchRequest:
    """Complete search: query, pagination and optional sort."""

    query: Query
    offset: int = 0
    size: int = 10
    sort: tuple[SortField, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "query": self.query.to_wire(),
            "from": self.offset,
            "size": self.size,
            "track_total_hits": True,
        }
        if self.sort:
            body["sort"] = [s.to_wire() for s in self.sort]
        return body
