"""Query Features — raw query-string params in, immutable query descriptor out.

Invariants:
    - Reserved keys (page, sort, limit, fields) never become filter predicates
    - Steps run filter → sort → limit_fields → paginate; each returns a new QueryFeatures
    - Nothing here executes a query; the store compiles and runs the QuerySpec
    - Operators are not validated here — unknown ones reach the store and fail there
    - Without a sort key the identifier gives a deterministic order for pagination

Design Decisions:
    - Frozen dataclasses + dataclasses.replace: no aliasing between steps, trivially testable
    - parse_positive_int is total: missing, non-numeric, zero and negative input all
      resolve to the default instead of leaking NaN-like values into skip/limit
    - Repeated reserved keys keep the last value; repeated filter keys become a list
      (membership test in the store)
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping

from app.core.domain_types import SortDirection

RESERVED_QUERY_KEYS = frozenset({"page", "sort", "limit", "fields"})
COMPARISON_OPERATORS = frozenset({"gte", "gt", "lte", "lt"})
EQUALITY = "eq"

IDENTIFIER_FIELD = "id"
INTERNAL_FIELDS: tuple[str, ...] = ("version",)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100

# price[gte] -> ("price", "gte")
_BRACKET_KEY = re.compile(r"^([^\[\]]+)\[([^\[\]]+)\]$")


# ─── Descriptor Values ───────────────────────────────────────────

@dataclass(frozen=True)
class FilterPredicate:
    """One conjunct of the filter: field <operator> value."""
    field: str
    operator: str
    value: Any


@dataclass(frozen=True)
class SortKey:
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class Projection:
    """Fields to return. A non-empty include wins; exclude lists fields to drop."""
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True)
class PageSpec:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return self.limit * (self.page - 1)


@dataclass(frozen=True)
class QuerySpec:
    """Fully resolved query. None means the step has not been applied."""
    predicates: tuple[FilterPredicate, ...] = ()
    sort: tuple[SortKey, ...] = ()
    projection: Projection | None = None
    page: PageSpec | None = None


DEFAULT_SORT = (SortKey(IDENTIFIER_FIELD, SortDirection.ASC),)
DEFAULT_PROJECTION = Projection(exclude=INTERNAL_FIELDS)


# ─── Parsing Helpers ─────────────────────────────────────────────

def parse_query_pairs(pairs: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Fold decoded query-string pairs into RawQueryParams.

    `price[gte]=50` becomes {"price": {"gte": "50"}}; a repeated filter key
    becomes a list; a repeated reserved key keeps its last value. When the plain
    and bracket forms of one field are mixed, the later form wins.
    """
    raw: dict[str, Any] = {}
    for key, value in pairs:
        match = _BRACKET_KEY.match(key)
        if match:
            name, operator = match.groups()
            existing = raw.get(name)
            nested = existing if isinstance(existing, dict) else {}
            nested[operator] = value
            raw[name] = nested
            continue

        existing = raw.get(key)
        if key in RESERVED_QUERY_KEYS or existing is None or isinstance(existing, dict):
            raw[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            raw[key] = [existing, value]
    return raw


def parse_positive_int(value: Any, default: int) -> int:
    """Parse a strictly positive integer, falling back to default for anything else."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value > 0 else default
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            number = int(text)
            return number if number > 0 else default
    return default


def _reserved_text(raw: Mapping[str, Any], key: str) -> str | None:
    """Text value of a reserved key, or None when absent/blank/not scalar."""
    value = raw.get(key)
    if isinstance(value, list):
        value = value[-1] if value else None
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        text = str(value).strip()
        return text or None
    return None


def _split_csv(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def extract_predicates(raw: Mapping[str, Any]) -> tuple[FilterPredicate, ...]:
    """Every non-reserved key becomes one predicate per operator (equality by default)."""
    predicates: list[FilterPredicate] = []
    for name, value in raw.items():
        if name in RESERVED_QUERY_KEYS:
            continue
        if isinstance(value, Mapping):
            for operator, operand in value.items():
                predicates.append(FilterPredicate(name, operator, operand))
        elif isinstance(value, (list, tuple)):
            predicates.append(FilterPredicate(name, EQUALITY, tuple(value)))
        else:
            predicates.append(FilterPredicate(name, EQUALITY, value))
    return tuple(predicates)


def parse_sort(text: str | None) -> tuple[SortKey, ...]:
    """'-price,name' -> (price desc, name asc); empty -> identifier ascending."""
    if not text:
        return DEFAULT_SORT
    keys = []
    for part in _split_csv(text):
        if part.startswith("-"):
            name = part[1:].strip()
            if name:
                keys.append(SortKey(name, SortDirection.DESC))
        else:
            keys.append(SortKey(part, SortDirection.ASC))
    return tuple(keys) or DEFAULT_SORT


def parse_projection(text: str | None) -> Projection:
    """'name,price' -> include; '-summary' -> exclude; empty -> hide internal fields."""
    if not text:
        return DEFAULT_PROJECTION
    include: list[str] = []
    exclude: list[str] = []
    for part in _split_csv(text):
        if part.startswith("-"):
            name = part[1:].strip()
            if name:
                exclude.append(name)
        else:
            include.append(part)
    if not include and not exclude:
        return DEFAULT_PROJECTION
    return Projection(include=tuple(include), exclude=tuple(exclude))


def parse_page(raw: Mapping[str, Any]) -> PageSpec:
    return PageSpec(
        page=parse_positive_int(_reserved_text(raw, "page"), DEFAULT_PAGE),
        limit=parse_positive_int(_reserved_text(raw, "limit"), DEFAULT_LIMIT),
    )


# ─── Builder ─────────────────────────────────────────────────────

class QueryFeatures:
    """Immutable query builder over RawQueryParams.

    QueryFeatures.scoped(raw, {"tour_id": tid}).filter().sort().limit_fields().paginate().spec
    """

    def __init__(self, raw_query: Mapping[str, Any], spec: QuerySpec | None = None):
        self.raw_query: Mapping[str, Any] = dict(raw_query)
        self.spec = spec or QuerySpec()

    @classmethod
    def scoped(
        cls,
        raw_query: Mapping[str, Any],
        base_filter: Mapping[str, Any] | None = None,
    ) -> "QueryFeatures":
        """Start from an ambient equality filter (nested-resource routes)."""
        predicates = tuple(
            FilterPredicate(name, EQUALITY, value)
            for name, value in (base_filter or {}).items()
        )
        return cls(raw_query, QuerySpec(predicates=predicates))

    def _with(self, **changes: Any) -> "QueryFeatures":
        return QueryFeatures(self.raw_query, replace(self.spec, **changes))

    def filter(self) -> "QueryFeatures":
        return self._with(
            predicates=self.spec.predicates + extract_predicates(self.raw_query),
        )

    def sort(self) -> "QueryFeatures":
        return self._with(sort=parse_sort(_reserved_text(self.raw_query, "sort")))

    def limit_fields(self) -> "QueryFeatures":
        return self._with(
            projection=parse_projection(_reserved_text(self.raw_query, "fields")),
        )

    def paginate(self) -> "QueryFeatures":
        return self._with(page=parse_page(self.raw_query))


def build_query_spec(
    raw_query: Mapping[str, Any],
    base_filter: Mapping[str, Any] | None = None,
) -> QuerySpec:
    """Run the full chain in its fixed order."""
    return (
        QueryFeatures.scoped(raw_query, base_filter)
        .filter()
        .sort()
        .limit_fields()
        .paginate()
        .spec
    )
