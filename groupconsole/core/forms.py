"""Create, edit and remove workflows for user groups."""
from __future__ import annotations
from typing import Any, Mapping, Optional

from .capabilities import Extensible, Reducible, Updatable, capability_name
from .exceptions import GroupNotFoundError, UnsupportedCapabilityError
from .filters import where
from .validators import normalize_group_name, validate_parent_name


class UserGroupForm:
    """Validates group input and applies it to a backend (the repository).

    Usage:
        form = UserGroupForm(backend)
        message = form.add({"group_name": "admins", "parent_name": ""})
    """

    def __init__(self, repository):
        self.repository = repository

    def _require(self, capability: type) -> None:
        if not isinstance(self.repository, capability):
            raise UnsupportedCapabilityError(self.repository.name, capability_name(capability))

    @staticmethod
    def validate(values: Mapping[str, Any]) -> dict[str, Optional[str]]:
        """Return normalized group values.

        Raises:
            ValueError: On invalid input
        """
        group_name = normalize_group_name(values.get("group_name", ""))
        parent_name = validate_parent_name(values.get("parent_name"), group_name)
        return {"group_name": group_name, "parent_name": parent_name}

    def add(self, values: Mapping[str, Any]) -> str:
        """Create a group.

        Raises:
            UnsupportedCapabilityError: If the backend is not extensible
            ValueError: On invalid input
            GroupAlreadyExistsError: If the group exists
        """
        self._require(Extensible)
        data = self.validate(values)
        self.repository.insert("group", data)
        return f'Group "{data["group_name"]}" has been created'

    def edit(self, group_name: str, values: Mapping[str, Any]) -> str:
        """Rename a group or change its parent.

        Raises:
            UnsupportedCapabilityError: If the backend is not updatable
            GroupNotFoundError: If nothing matched `group_name`
        """
        self._require(Updatable)
        data = self.validate(values)
        if not self.repository.update("group", data, where("group_name", group_name)):
            raise GroupNotFoundError(group_name)
        return f'Group "{data["group_name"]}" has been edited'

    def remove(self, group_name: str) -> str:
        """Remove a group together with its memberships.

        Raises:
            UnsupportedCapabilityError: If the backend is not reducible
            GroupNotFoundError: If nothing matched `group_name`
        """
        self._require(Reducible)
        if not self.repository.delete("group", where("group_name", group_name)):
            raise GroupNotFoundError(group_name)
        return f'Group "{group_name}" has been removed'
