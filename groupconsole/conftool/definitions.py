"""Legacy → Icinga 2 object definition migration.

This module converts LegacyObjectDefinition instances into Icinga 2 object
definitions and renders them as configuration text.

Usage:
    definition = from_legacy_object(legacy_object)
    print(definition.render())

Every variant carries three tables:
- attribute_map: legacy attribute name → new attribute name
- array_attributes: legacy attributes holding comma separated lists
- converters: legacy attribute name → function(definition, value) for
  attributes that need more than a rename (e.g. group members becoming
  assign rules)
"""
from __future__ import annotations
import re
from typing import Callable, ClassVar, Union

from .exceptions import InvalidAttributeValueError, UnmappedAttributeError, UnsupportedObjectTypeError
from .legacy import LegacyObjectDefinition

AttributeValue = Union[str, list[str]]
Converter = Callable[["Icinga2ObjectDefinition", str], None]

_NUMERIC_PREFIX_RE = re.compile(r"^\d+")
_COMMA_RE = re.compile(r"\s*,\s*")


def split_comma(value: str) -> list[str]:
    """Split a legacy comma list, trimming whitespace and dropping empty items."""
    return [part for part in _COMMA_RE.split(value.strip()) if part]


def escape_legacy_string(value: str) -> str:
    """Quote a value as an Icinga 2 string literal."""
    value = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{value}"'


def migrate_value(value: str) -> str:
    """Scalar transform: numeric/duration literals pass through, the rest is quoted."""
    if _NUMERIC_PREFIX_RE.match(value):
        return value
    return escape_legacy_string(value)


def _ignore(definition: "Icinga2ObjectDefinition", value: str) -> None:
    # identity attributes are carried by the definition name
    pass


class Icinga2ObjectDefinition:
    """An Icinga 2 object definition built from a legacy object."""

    object_type: ClassVar[str] = ""
    attribute_map: ClassVar[dict[str, str]] = {}
    array_attributes: ClassVar[frozenset[str]] = frozenset()
    converters: ClassVar[dict[str, Converter]] = {}

    def __init__(self, name: str):
        self.name = name
        self.attributes: dict[str, AttributeValue] = {}
        self.assigns: list[str] = []
        self.ignores: list[str] = []

    def __setitem__(self, key: str, value: AttributeValue) -> None:
        self.attributes[key] = value

    def __getitem__(self, key: str) -> AttributeValue:
        return self.attributes[key]

    def __contains__(self, key: str) -> bool:
        return key in self.attributes

    def assign_where(self, expression: str) -> None:
        self.assigns.append(expression)

    def ignore_where(self, expression: str) -> None:
        self.ignores.append(expression)

    def set_attributes_from_legacy(self, legacy: LegacyObjectDefinition) -> None:
        """Populate this definition from a legacy object's attribute bag.

        Raises:
            UnmappedAttributeError: If an attribute has no converter and no mapping
        """
        for key, value in legacy.attributes.items():
            converter = self.converters.get(key)
            if converter is not None:
                converter(self, value)
                continue
            if key not in self.attribute_map:
                raise UnmappedAttributeError(key, legacy.dump())
            self[self.attribute_map[key]] = self.migrate_attribute(key, value)

    def migrate_attribute(self, key: str, value: str) -> AttributeValue:
        if key in self.array_attributes:
            return [migrate_value(item) for item in split_comma(value)]
        return migrate_value(value)

    # ─────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────
    @staticmethod
    def render_array(values: list[str]) -> str:
        # array elements are always quoted, numeric or not
        return "[ " + ", ".join(escape_legacy_string(value) for value in values) + " ]"

    def _attribute_lines(self) -> list[str]:
        lines = []
        for key, value in self.attributes.items():
            if isinstance(value, list):
                value = self.render_array(value)
            lines.append(f"    {key} = {value}\n")
        return lines

    def _assignment_lines(self) -> list[str]:
        lines = [f"    assign where {expression}\n" for expression in self.assigns]
        lines.extend(f"    ignore where {expression}\n" for expression in self.ignores)
        return lines

    def render(self) -> str:
        """Render the definition as Icinga 2 configuration text."""
        body = "".join(self._attribute_lines() + self._assignment_lines())
        return f'object {self.object_type} "{self.name}" {{\n{body}}}\n\n'

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class Icinga2Command(Icinga2ObjectDefinition):
    object_type = "CheckCommand"
    attribute_map = {
        "command_line": "command",
    }
    converters = {
        "command_name": _ignore,
    }


class Icinga2GroupDefinition(Icinga2ObjectDefinition):
    """Shared rules for host, service and user groups.

    Legacy groups list their members explicitly; Icinga 2 groups select
    members with assign/ignore rules instead.
    """

    member_kind: ClassVar[str] = "host"
    attribute_map = {
        "alias": "display_name",
        "notes": "notes",
        "notes_url": "notes_url",
        "action_url": "action_url",
    }

    def _member_expression(self, member: str) -> str:
        return f"{self.member_kind}.name == {escape_legacy_string(member)}"

    def convert_members(self, value: str) -> None:
        for member in split_comma(value):
            if member == "*":
                self.assign_where("true")
            elif member.startswith("!"):
                self.ignore_where(self._member_expression(member[1:]))
            else:
                self.assign_where(self._member_expression(member))


def _convert_members(definition: Icinga2GroupDefinition, value: str) -> None:
    definition.convert_members(value)


class Icinga2Hostgroup(Icinga2GroupDefinition):
    object_type = "HostGroup"
    member_kind = "host"
    attribute_map = {
        **Icinga2GroupDefinition.attribute_map,
        "hostgroup_members": "groups",
    }
    array_attributes = frozenset({"hostgroup_members"})
    converters = {
        "hostgroup_name": _ignore,
        "members": _convert_members,
    }


class Icinga2Servicegroup(Icinga2GroupDefinition):
    object_type = "ServiceGroup"
    member_kind = "service"
    attribute_map = {
        **Icinga2GroupDefinition.attribute_map,
        "servicegroup_members": "groups",
    }
    array_attributes = frozenset({"servicegroup_members"})
    converters = {
        "servicegroup_name": _ignore,
        "members": _convert_members,
    }

    def convert_members(self, value: str) -> None:
        # members are host,service pairs
        items = split_comma(value)
        if len(items) % 2:
            raise InvalidAttributeValueError("members", value, "expected host,service pairs")
        for host, service in zip(items[0::2], items[1::2]):
            self.assign_where(
                f"host.name == {escape_legacy_string(host)} && service.name == {escape_legacy_string(service)}"
            )


class Icinga2Usergroup(Icinga2GroupDefinition):
    object_type = "UserGroup"
    member_kind = "user"
    attribute_map = {
        "alias": "display_name",
        "contactgroup_members": "groups",
    }
    array_attributes = frozenset({"contactgroup_members"})
    converters = {
        "contactgroup_name": _ignore,
        "members": _convert_members,
    }


OBJECT_TYPES: dict[str, type[Icinga2ObjectDefinition]] = {
    "command": Icinga2Command,
    "hostgroup": Icinga2Hostgroup,
    "servicegroup": Icinga2Servicegroup,
    "contactgroup": Icinga2Usergroup,
}


def from_legacy_object(legacy: LegacyObjectDefinition) -> Icinga2ObjectDefinition:
    """Convert one legacy object into its Icinga 2 definition.

    Args:
        legacy: Parsed legacy object

    Returns:
        Populated Icinga 2 definition

    Raises:
        UnsupportedObjectTypeError: If the legacy type has no variant
        UnmappedAttributeError: If an attribute cannot be converted
    """
    variant = OBJECT_TYPES.get(legacy.definition_type)
    if variant is None:
        raise UnsupportedObjectTypeError(legacy.definition_type, str(legacy))

    definition = variant(str(legacy))
    definition.set_attributes_from_legacy(legacy)
    return definition
