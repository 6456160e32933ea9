"""Batch migration of legacy objects with skip-and-log error handling."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable

from .definitions import Icinga2ObjectDefinition, from_legacy_object
from .exceptions import MigrationError
from .legacy import LegacyObjectDefinition

logger = logging.getLogger(__name__)


@dataclass
class MigrationFailure:
    object_type: str
    object_name: str
    error: MigrationError


@dataclass
class MigrationReport:
    """Outcome of migrating a batch of legacy objects."""
    definitions: list[Icinga2ObjectDefinition] = field(default_factory=list)
    failures: list[MigrationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def render(self) -> str:
        """Concatenate the rendered text of every converted definition."""
        return "".join(definition.render() for definition in self.definitions)


def migrate_objects(objects: Iterable[LegacyObjectDefinition], *, strict: bool = False) -> MigrationReport:
    """Convert a batch of legacy objects.

    Args:
        objects: Legacy objects in output order
        strict: Re-raise the first migration error instead of skipping the object

    Returns:
        MigrationReport with converted definitions and skipped objects

    Raises:
        MigrationError: Only when strict is set
    """
    report = MigrationReport()
    for legacy in objects:
        try:
            report.definitions.append(from_legacy_object(legacy))
        except MigrationError as exc:
            if strict:
                raise
            logger.warning("Skipping %s '%s': %s", legacy.definition_type, legacy.name, exc)
            report.failures.append(MigrationFailure(legacy.definition_type, legacy.name, exc))
    return report
