"""In-process query over backend rows.

Backends only need to yield raw rows for a table; filtering, ordering,
column projection and pagination happen here.

Usage:
    query = backend.select(["group_name"]).where("parent_name", "ops")
    query.order("group_name", "desc").limit(25, 0)
    rows = query.fetch_all()
"""
from __future__ import annotations
from typing import Any, Iterator, Optional

from .exceptions import QueryError
from .filters import Filter, match_all, where as filter_where


class Query:
    """Lazily evaluated select over one backend table."""

    def __init__(self, backend, table: str, columns: Optional[list[str]] = None):
        available = backend.table_columns(table)
        self.backend = backend
        self.table = table
        self.columns = list(columns) if columns else list(available)
        self._available = set(available)
        self._check_columns(self.columns)
        self._filter = match_all()
        self._order: list[tuple[str, str]] = []
        self._limit: Optional[int] = None
        self._offset = 0

    def _check_columns(self, columns) -> None:
        unknown = [column for column in columns if column not in self._available]
        if unknown:
            raise QueryError(f"Unknown column(s) for table '{self.table}': {', '.join(sorted(unknown))}")

    def from_(self, table: str, columns: Optional[list[str]] = None) -> "Query":
        """Return a fresh query on another table of the same backend."""
        return Query(self.backend, table, columns)

    def where(self, column: str, value: Any) -> "Query":
        return self.apply_filter(filter_where(column, value))

    def apply_filter(self, f: Optional[Filter]) -> "Query":
        if f is None or f.is_empty():
            return self
        self._check_columns(f.columns())
        self._filter.add(f)
        return self

    @property
    def filter(self) -> Filter:
        return self._filter

    def order(self, column: str, direction: str = "asc") -> "Query":
        direction = (direction or "asc").lower()
        if direction not in {"asc", "desc"}:
            raise QueryError(f"Invalid sort direction '{direction}'")
        self._check_columns([column])
        self._order.append((column, direction))
        return self

    def limit(self, count: Optional[int], offset: int = 0) -> "Query":
        if count is not None and count < 0:
            raise QueryError("Limit must not be negative")
        if offset < 0:
            raise QueryError("Offset must not be negative")
        self._limit = count
        self._offset = offset
        return self

    def _matching_rows(self) -> list[dict[str, Any]]:
        rows = [row for row in self.backend.fetch_rows(self.table) if self._filter.matches(row)]
        # stable sorts applied last-key-first give multi-column ordering
        for column, direction in reversed(self._order):
            rows.sort(
                key=lambda row: (row.get(column) is None, str(row.get(column) or "").lower()),
                reverse=direction == "desc",
            )
        return rows

    def _project(self, row: dict[str, Any]) -> dict[str, Any]:
        return {column: row.get(column) for column in self.columns}

    def count(self) -> int:
        """Number of rows matching the filter, ignoring limit and offset."""
        return len(self._matching_rows())

    def fetch_all(self) -> list[dict[str, Any]]:
        rows = self._matching_rows()
        end = None if self._limit is None else self._offset + self._limit
        return [self._project(row) for row in rows[self._offset:end]]

    def fetch_row(self) -> Optional[dict[str, Any]]:
        """First matching row, or None when nothing matches."""
        rows = self._matching_rows()[self._offset:]
        return self._project(rows[0]) if rows else None

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.fetch_all())

    def __repr__(self) -> str:
        return f"<Query {self.table} {self._filter!r}>"
