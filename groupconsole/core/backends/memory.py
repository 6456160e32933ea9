"""In-memory user group backend seeded from its configuration section.

Example section (groups.yaml):

    demo:
      backend: memory
      groups:
        - name: admins
          members: [alice, bob]
        - name: web-admins
          parent: admins
          members: [carol]
"""
from __future__ import annotations
import logging
from typing import Any, Iterable, Optional

from ..capabilities import Extensible, Reducible, Updatable
from ..exceptions import BackendConfigError, BackendError, GroupAlreadyExistsError, GroupNotFoundError
from ..filters import Filter, match_all
from .base import UserGroupBackend, utc_now

logger = logging.getLogger(__name__)


class MemoryUserGroupBackend(UserGroupBackend, Extensible, Updatable, Reducible):
    """Fully writable backend keeping rows in process memory."""

    backend_type = "memory"

    def __init__(
        self,
        name: str,
        config: Optional[dict[str, Any]] = None,
        rows: Optional[dict[str, list[dict[str, Any]]]] = None,
    ):
        """Initialize the backend.

        Args:
            name: Backend name
            config: Configuration section; its "groups" list seeds new stores
            rows: Existing row store to share between requests (skips seeding)
        """
        super().__init__(name, config)
        if rows is not None:
            self.rows = rows
            return
        self.rows: dict[str, list[dict[str, Any]]] = {table: [] for table in self.tables}
        self._seed(self.config.get("groups") or [])

    def _seed(self, groups: list[dict[str, Any]]) -> None:
        if not isinstance(groups, list):
            raise BackendConfigError(f"Backend '{self.name}': 'groups' must be a list")
        for entry in groups:
            if not isinstance(entry, dict) or not entry.get("name"):
                raise BackendConfigError(f"Backend '{self.name}': every group needs a name")
            self.insert("group", {"group_name": entry["name"], "parent_name": entry.get("parent")})
            for user_name in entry.get("members") or []:
                self.insert("group_membership", {"group_name": entry["name"], "user_name": user_name})

    def fetch_rows(self, table: str) -> Iterable[dict[str, Any]]:
        self.table_columns(table)
        return [dict(row) for row in self.rows[table]]

    def _group_exists(self, group_name: str) -> bool:
        return any(row["group_name"] == group_name for row in self.rows["group"])

    def insert(self, table: str, values: dict[str, Any]) -> None:
        columns = self.table_columns(table)
        now = utc_now()
        row = {column: values.get(column) for column in columns}
        row["created_at"] = now
        row["last_modified"] = now

        if table == "group":
            if self._group_exists(row["group_name"]):
                raise GroupAlreadyExistsError(row["group_name"])
            parent = row.get("parent_name")
            if parent and not self._group_exists(parent):
                raise GroupNotFoundError(parent)
        else:
            if not self._group_exists(row["group_name"]):
                raise GroupNotFoundError(row["group_name"])
            if any(
                existing["group_name"] == row["group_name"] and existing["user_name"] == row["user_name"]
                for existing in self.rows[table]
            ):
                raise BackendError(f'User "{row["user_name"]}" is already a member of group "{row["group_name"]}"')

        self.rows[table].append(row)
        logger.debug("Inserted into %s.%s: %s", self.name, table, row)

    def update(self, table: str, values: dict[str, Any], filter: Optional[Filter] = None) -> int:
        columns = self.table_columns(table)
        f = filter or match_all()
        changes = {column: value for column, value in values.items() if column in columns}
        parent = changes.get("parent_name") if table == "group" else None
        if parent and not self._group_exists(parent):
            raise GroupNotFoundError(parent)
        changed = 0
        for row in self.rows[table]:
            if not f.matches(row):
                continue
            old_name = row["group_name"]
            new_name = changes.get("group_name", old_name)
            if table == "group" and new_name != old_name:
                if self._group_exists(new_name):
                    raise GroupAlreadyExistsError(new_name)
                self._rename_references(old_name, new_name)
            row.update(changes)
            row["last_modified"] = utc_now()
            changed += 1
        return changed

    def _rename_references(self, old_name: str, new_name: str) -> None:
        for membership in self.rows["group_membership"]:
            if membership["group_name"] == old_name:
                membership["group_name"] = new_name
        for group in self.rows["group"]:
            if group.get("parent_name") == old_name:
                group["parent_name"] = new_name

    def delete(self, table: str, filter: Optional[Filter] = None) -> int:
        self.table_columns(table)
        f = filter or match_all()
        doomed = [row for row in self.rows[table] if f.matches(row)]
        self.rows[table] = [row for row in self.rows[table] if not f.matches(row)]
        if table == "group":
            names = {row["group_name"] for row in doomed}
            self.rows["group_membership"] = [
                row for row in self.rows["group_membership"] if row["group_name"] not in names
            ]
        return len(doomed)
