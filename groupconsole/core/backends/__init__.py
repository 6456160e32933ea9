"""User group backends.

Architecture:
- base.py: UserGroupBackend base class and table layout
- memory.py: writable in-process backend (all capabilities)
- yaml_file.py: read-only backend backed by a YAML file
- keycloak.py: Keycloak realm groups (select and delete)

Usage:
    backend = create_backend("demo", {"backend": "memory", "groups": [...]})
    rows = backend.select(["group_name"]).fetch_all()
"""
from __future__ import annotations
from typing import Any, Optional

from ..exceptions import BackendConfigError
from .base import GROUP_COLUMNS, MEMBERSHIP_COLUMNS, UserGroupBackend
from .keycloak import KeycloakUserGroupBackend
from .memory import MemoryUserGroupBackend
from .yaml_file import YamlUserGroupBackend

BACKEND_TYPES: dict[str, type[UserGroupBackend]] = {
    "memory": MemoryUserGroupBackend,
    "yaml": YamlUserGroupBackend,
    "keycloak": KeycloakUserGroupBackend,
}


def create_backend(name: str, section: Optional[dict[str, Any]]) -> UserGroupBackend:
    """Instantiate the backend described by one configuration section.

    Raises:
        BackendConfigError: If the section has no or an unknown backend type
    """
    section = section or {}
    backend_type = str(section.get("backend", "")).strip().lower()
    if not backend_type:
        raise BackendConfigError(f"User group backend '{name}' has no 'backend' type configured")
    try:
        backend_cls = BACKEND_TYPES[backend_type]
    except KeyError:
        raise BackendConfigError(
            f"User group backend '{name}' has unknown type '{backend_type}' "
            f"(expected one of: {', '.join(sorted(BACKEND_TYPES))})"
        ) from None
    return backend_cls(name, section)


class BackendFactory:
    """Creates a fresh backend per request while memory stores live as long as the factory.

    The Flask app keeps one factory so that changes made through a memory
    backend survive between requests.
    """

    def __init__(self):
        self._stores: dict[str, dict[str, list[dict[str, Any]]]] = {}

    def __call__(self, name: str, section: Optional[dict[str, Any]]) -> UserGroupBackend:
        section = section or {}
        if str(section.get("backend", "")).strip().lower() != "memory":
            return create_backend(name, section)
        backend = MemoryUserGroupBackend(name, section, rows=self._stores.get(name))
        self._stores[name] = backend.rows
        return backend

    def reset(self) -> None:
        self._stores.clear()


__all__ = [
    "BACKEND_TYPES",
    "GROUP_COLUMNS",
    "MEMBERSHIP_COLUMNS",
    "BackendFactory",
    "UserGroupBackend",
    "MemoryUserGroupBackend",
    "YamlUserGroupBackend",
    "KeycloakUserGroupBackend",
    "create_backend",
]
