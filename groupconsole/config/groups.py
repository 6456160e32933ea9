"""User group backend configuration (groups.yaml).

The file maps backend names to sections, in the order backends are offered:

    demo:
      backend: memory
      groups:
        - name: admins
          members: [alice]
    corporate:
      backend: yaml
      path: /etc/groupconsole/corporate-groups.yaml
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

import yaml


class GroupsConfigError(ValueError):
    """groups.yaml is missing, unreadable or malformed."""
    pass


class GroupsConfig(Mapping[str, dict]):
    """Read-only, ordered snapshot of backend sections."""

    def __init__(self, sections: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._sections: dict[str, dict[str, Any]] = {}
        for name, section in (sections or {}).items():
            if not isinstance(section, Mapping):
                raise GroupsConfigError(f"Section '{name}' must be a mapping")
            self._sections[str(name)] = dict(section)

    def has_section(self, name: str) -> bool:
        return name in self._sections

    def get_section(self, name: str) -> dict[str, Any]:
        # copies keep the snapshot immutable for callers
        return dict(self._sections[name])

    def __getitem__(self, name: str) -> dict[str, Any]:
        return self.get_section(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __repr__(self) -> str:
        return f"GroupsConfig({list(self._sections)})"


DEMO_GROUPS = GroupsConfig({
    "demo": {
        "backend": "memory",
        "groups": [
            {"name": "admins", "members": ["alice", "bob"]},
            {"name": "operators", "parent": "admins", "members": ["carol"]},
            {"name": "analysts", "members": ["joe"]},
        ],
    },
})


def load_groups_config(path: str | Path) -> GroupsConfig:
    """Parse a groups.yaml file.

    Raises:
        GroupsConfigError: If the file cannot be read or is not a mapping of sections
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise GroupsConfigError(f"Cannot read groups config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise GroupsConfigError(f"Invalid YAML in groups config {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise GroupsConfigError(f"Groups config {path} must be a mapping of backend sections")
    return GroupsConfig(data)
