"""Legacy object definition migration.

Architecture:
- legacy.py: legacy object model and configuration parser
- definitions.py: Icinga 2 object variants, value transforms and rendering
- migrate.py: batch migration with skip-and-log reporting
- exceptions.py: typed migration errors

Usage:
    from groupconsole.conftool import parse_legacy_objects, migrate_objects

    report = migrate_objects(parse_legacy_objects(text))
    print(report.render())
"""
from .definitions import (
    OBJECT_TYPES,
    Icinga2ObjectDefinition,
    Icinga2Command,
    Icinga2GroupDefinition,
    Icinga2Hostgroup,
    Icinga2Servicegroup,
    Icinga2Usergroup,
    escape_legacy_string,
    from_legacy_object,
    migrate_value,
    split_comma,
)
from .exceptions import (
    MigrationError,
    LegacyParseError,
    UnsupportedObjectTypeError,
    UnmappedAttributeError,
    InvalidAttributeValueError,
)
from .legacy import LegacyObjectDefinition, parse_legacy_objects
from .migrate import MigrationFailure, MigrationReport, migrate_objects

__all__ = [
    # Model
    "LegacyObjectDefinition",
    "Icinga2ObjectDefinition",
    "Icinga2Command",
    "Icinga2GroupDefinition",
    "Icinga2Hostgroup",
    "Icinga2Servicegroup",
    "Icinga2Usergroup",
    "OBJECT_TYPES",

    # Functions
    "parse_legacy_objects",
    "from_legacy_object",
    "migrate_objects",
    "migrate_value",
    "escape_legacy_string",
    "split_comma",
    "MigrationReport",
    "MigrationFailure",

    # Exceptions
    "MigrationError",
    "LegacyParseError",
    "UnsupportedObjectTypeError",
    "UnmappedAttributeError",
    "InvalidAttributeValueError",
]
