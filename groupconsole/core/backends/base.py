"""Common base for user group backends."""
from __future__ import annotations
from abc import abstractmethod
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..capabilities import Selectable
from ..exceptions import QueryError
from ..query import Query

GROUP_COLUMNS = ("group_name", "parent_name", "created_at", "last_modified")
MEMBERSHIP_COLUMNS = ("group_name", "user_name", "created_at", "last_modified")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserGroupBackend(Selectable):
    """A named, selectable source of groups and group memberships.

    Subclasses provide rows through fetch_rows(); write capabilities are
    added by mixing in Extensible, Updatable or Reducible.
    """

    backend_type = ""
    tables: dict[str, tuple[str, ...]] = {
        "group": GROUP_COLUMNS,
        "group_membership": MEMBERSHIP_COLUMNS,
    }

    def __init__(self, name: str, config: Optional[dict[str, Any]] = None):
        self.name = name
        self.config = dict(config or {})

    def table_columns(self, table: str) -> tuple[str, ...]:
        try:
            return self.tables[table]
        except KeyError:
            raise QueryError(f"Unknown table '{table}'") from None

    def select(self, columns: Optional[list[str]] = None, table: str = "group") -> Query:
        return Query(self, table, columns)

    @abstractmethod
    def fetch_rows(self, table: str) -> Iterable[dict[str, Any]]:
        """Yield every row of `table` as a dict keyed by column name."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
