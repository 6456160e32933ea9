"""Legacy (Icinga 1.x style) object definitions and their parser.

Legacy configuration files look like this:

    # comment
    define command {
        command_name    check_ping
        command_line    $USER1$/check_ping -H $HOSTADDRESS$
    }

Usage:
    objects = parse_legacy_objects(Path("objects.cfg").read_text())
    for obj in objects:
        print(obj.definition_type, obj.name, obj.attributes)
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field

from .exceptions import LegacyParseError

_DEFINE_RE = re.compile(r"^define\s+(?P<type>\w+)\s*\{\s*(?P<rest>.*)$")
# an unescaped semicolon starts a comment, "\;" is a literal semicolon
_COMMENT_RE = re.compile(r"(?<!\\);.*$")
# a closing brace must stand alone: "${HOME}" is part of a value
_CLOSE_RE = re.compile(r"(?:^|\s)\}$")


@dataclass(frozen=True)
class LegacyObjectDefinition:
    """One parsed legacy object: a type tag plus an ordered attribute bag."""
    definition_type: str
    name: str
    attributes: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.name

    def dump(self) -> str:
        """Render the object back in legacy syntax (used in error messages)."""
        width = max((len(key) for key in self.attributes), default=0)
        lines = [f"define {self.definition_type} {{"]
        for key, value in self.attributes.items():
            lines.append(f"    {key.ljust(width)}  {value}")
        lines.append("}")
        return "\n".join(lines)


def _object_name(definition_type: str, attributes: dict[str, str]) -> str | None:
    return attributes.get(f"{definition_type}_name") or attributes.get("name")


def parse_legacy_objects(text: str) -> list[LegacyObjectDefinition]:
    """Parse every `define <type> { ... }` block in legacy configuration text.

    Args:
        text: Legacy configuration file contents

    Returns:
        Objects in file order

    Raises:
        LegacyParseError: On attributes outside a block, nested or
            unterminated blocks, or objects without a name
    """
    objects: list[LegacyObjectDefinition] = []
    current_type: str | None = None
    current_attrs: dict[str, str] = {}
    start_line = 0

    for lineno, raw in enumerate(text.splitlines(), start=1):
        if raw.strip().startswith("#"):
            continue
        line = _COMMENT_RE.sub("", raw).strip()
        if not line:
            continue

        match = _DEFINE_RE.match(line)
        if match:
            if current_type is not None:
                raise LegacyParseError(f"nested define inside '{current_type}' block", lineno)
            current_type = match.group("type")
            current_attrs = {}
            start_line = lineno
            line = match.group("rest").strip()
            if not line:
                continue

        if current_type is None:
            raise LegacyParseError(f"unexpected content outside of a define block: {line!r}", lineno)

        closes = bool(_CLOSE_RE.search(line))
        if closes:
            line = line[:-1].strip()

        if line:
            key, *value = re.split(r"\s+", line, maxsplit=1)
            current_attrs[key] = value[0].replace("\\;", ";") if value else ""

        if closes:
            name = _object_name(current_type, current_attrs)
            if not name:
                raise LegacyParseError(f"'{current_type}' object without a name", start_line)
            objects.append(LegacyObjectDefinition(current_type, name, current_attrs))
            current_type = None

    if current_type is not None:
        raise LegacyParseError(f"unterminated '{current_type}' block", start_line)

    return objects
