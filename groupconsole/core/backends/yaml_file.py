"""Read-only user group backend loaded from a YAML file.

Example section:

    corporate:
      backend: yaml
      path: /etc/groupconsole/corporate-groups.yaml

File format:

    admins:
      members: [alice, bob]
    web-admins:
      parent: admins
      members: [carol]
"""
from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from ..exceptions import BackendConfigError, BackendError
from .base import UserGroupBackend


class YamlUserGroupBackend(UserGroupBackend):
    """Selectable-only backend; groups are maintained by editing the file."""

    backend_type = "yaml"

    def __init__(self, name: str, config: Optional[dict[str, Any]] = None):
        super().__init__(name, config)
        path = self.config.get("path")
        if not path:
            raise BackendConfigError(f"Backend '{name}': 'path' is required for yaml backends")
        self.path = Path(path)
        self._data: Optional[dict[str, Any]] = None

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            try:
                with self.path.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle) or {}
            except (OSError, yaml.YAMLError) as exc:
                raise BackendError(f"Backend '{self.name}': cannot read {self.path}: {exc}") from exc
            if not isinstance(data, dict):
                raise BackendError(f"Backend '{self.name}': {self.path} must contain a mapping of groups")
            self._data = data
        return self._data

    def _file_timestamp(self) -> Optional[str]:
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            return None
        return datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat()

    def fetch_rows(self, table: str) -> Iterable[dict[str, Any]]:
        self.table_columns(table)
        timestamp = self._file_timestamp()
        rows = []
        for group_name, entry in self._load().items():
            entry = entry or {}
            if table == "group":
                rows.append({
                    "group_name": str(group_name),
                    "parent_name": entry.get("parent"),
                    "created_at": timestamp,
                    "last_modified": timestamp,
                })
                continue
            for user_name in entry.get("members") or []:
                rows.append({
                    "group_name": str(group_name),
                    "user_name": str(user_name),
                    "created_at": timestamp,
                    "last_modified": timestamp,
                })
        return rows
