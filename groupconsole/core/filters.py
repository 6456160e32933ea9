"""Row filters used by backend queries and deletes.

Usage:
    f = match_all(where("group_name", "admins"), where("user_name", "alice"))
    f.matches({"group_name": "admins", "user_name": "alice"})  # True

    # Build from a query string like ?group_name=web*&parent_name!=ops
    f = from_query_args(request.args, ignore={"limit", "page"})
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from typing import Any, Iterable, Mapping


class Filter(ABC):
    """Predicate over a row dictionary."""

    @abstractmethod
    def matches(self, row: Mapping[str, Any]) -> bool:
        """Return True if the row satisfies the filter."""

    @abstractmethod
    def columns(self) -> set[str]:
        """Columns referenced by the filter."""

    def could_match(self, partial: Mapping[str, Any]) -> bool:
        """False only when the known columns of a partial row already rule it out."""
        return self.matches(partial) if self.columns() <= set(partial) else True

    def is_empty(self) -> bool:
        return False


class FilterMatch(Filter):
    """column = value (or != when negated); `*` in value acts as a wildcard."""

    def __init__(self, column: str, value: Any, negate: bool = False):
        self.column = column
        self.value = value
        self.negate = negate

    def _matches_value(self, actual: Any) -> bool:
        if actual is None:
            return self.value is None
        expected = str(self.value)
        if "*" in expected:
            return fnmatchcase(str(actual).lower(), expected.lower())
        return str(actual) == expected

    def matches(self, row: Mapping[str, Any]) -> bool:
        result = self._matches_value(row.get(self.column))
        return not result if self.negate else result

    def columns(self) -> set[str]:
        return {self.column}

    def __repr__(self) -> str:
        sign = "!=" if self.negate else "="
        return f"{self.column}{sign}{self.value}"


class FilterChain(Filter):
    """Conjunction ("and") or disjunction ("or") of filters."""

    def __init__(self, operator: str, filters: Iterable[Filter] = ()):
        if operator not in {"and", "or"}:
            raise ValueError(f"Invalid filter operator '{operator}'")
        self.operator = operator
        self.filters = list(filters)

    def matches(self, row: Mapping[str, Any]) -> bool:
        if not self.filters:
            return True
        if self.operator == "and":
            return all(f.matches(row) for f in self.filters)
        return any(f.matches(row) for f in self.filters)

    def could_match(self, partial: Mapping[str, Any]) -> bool:
        if not self.filters:
            return True
        if self.operator == "and":
            return all(f.could_match(partial) for f in self.filters)
        return any(f.could_match(partial) for f in self.filters)

    def columns(self) -> set[str]:
        cols: set[str] = set()
        for f in self.filters:
            cols |= f.columns()
        return cols

    def is_empty(self) -> bool:
        return all(f.is_empty() for f in self.filters)

    def add(self, f: Filter) -> "FilterChain":
        self.filters.append(f)
        return self

    def __repr__(self) -> str:
        joiner = "&" if self.operator == "and" else "|"
        return "(" + joiner.join(repr(f) for f in self.filters) + ")"


def where(column: str, value: Any, negate: bool = False) -> FilterMatch:
    return FilterMatch(column, value, negate)


def match_all(*filters: Filter) -> FilterChain:
    return FilterChain("and", filters)


def match_any(*filters: Filter) -> FilterChain:
    return FilterChain("or", filters)


def from_query_args(args: Mapping[str, Any], ignore: Iterable[str] = ()) -> FilterChain:
    """Build a conjunction from request arguments.

    A key ending in "!" (from `column!=value`) negates the match. Repeated
    keys are or-ed together (and-ed when negated). Keys in `ignore` and empty values are skipped.
    """
    ignored = set(ignore)
    chain = match_all()
    for key in args.keys():
        column, negate = (key[:-1], True) if key.endswith("!") else (key, False)
        if column in ignored or key in ignored:
            continue
        values = args.getlist(key) if hasattr(args, "getlist") else [args[key]]
        matches = [where(column, value, negate) for value in values if value not in (None, "")]
        if len(matches) == 1:
            chain.add(matches[0])
        elif matches:
            # column!=a&column!=b excludes both
            chain.add(match_all(*matches) if negate else match_any(*matches))
    return chain
