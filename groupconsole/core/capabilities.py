"""Capability interfaces a user group backend may implement.

Operations check capabilities with isinstance(), so a backend advertises
what it supports purely through its base classes:

    class MyBackend(UserGroupBackend, Extensible, Reducible):
        ...
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Optional


class Selectable(ABC):
    """Backend rows can be queried."""

    @abstractmethod
    def select(self, columns: Optional[list[str]] = None, table: str = "group"):
        """Return a query over `table` yielding `columns`."""


class Extensible(ABC):
    """Backend rows can be created."""

    @abstractmethod
    def insert(self, table: str, values: dict[str, Any]) -> None:
        """Insert one row into `table`."""


class Updatable(ABC):
    """Backend rows can be changed."""

    @abstractmethod
    def update(self, table: str, values: dict[str, Any], filter=None) -> int:
        """Update rows of `table` matching `filter`; return the number changed."""


class Reducible(ABC):
    """Backend rows can be deleted."""

    @abstractmethod
    def delete(self, table: str, filter=None) -> int:
        """Delete rows of `table` matching `filter`; return the number removed."""


def capability_name(capability: type) -> str:
    """Lower-case display name of a capability (e.g. "reducible")."""
    return capability.__name__.lower()
