"""Convert legacy object definitions (commands and groups) to Icinga 2 syntax.

Usage:
    python scripts/migrate_objects.py objects.cfg groups.cfg --output migrated.conf
"""
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from groupconsole.conftool import (
    LegacyParseError,
    MigrationError,
    migrate_objects,
    parse_legacy_objects,
)


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point; returns the process exit code."""
    parser = argparse.ArgumentParser(description="Legacy object definition migrator")
    parser.add_argument("files", nargs="+", type=Path, help="Legacy configuration files")
    parser.add_argument("--output", "-o", type=Path, help="Write rendered objects here instead of stdout")
    parser.add_argument("--strict", action="store_true", help="Stop at the first object that cannot be converted")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[migrate] %(levelname)s %(message)s",
    )

    objects = []
    for path in args.files:
        try:
            objects.extend(parse_legacy_objects(path.read_text(encoding="utf-8")))
        except OSError as e:
            print(f"[migrate] Error: cannot read {path}: {e}", file=sys.stderr)
            return 1
        except LegacyParseError as e:
            print(f"[migrate] Error: {path}: {e}", file=sys.stderr)
            return 1

    try:
        report = migrate_objects(objects, strict=args.strict)
    except MigrationError as e:
        print(f"[migrate] Error: {e}", file=sys.stderr)
        return 1

    rendered = report.render()
    if args.output:
        args.output.write_text(rendered, encoding="utf-8")
    else:
        sys.stdout.write(rendered)

    print(
        f"[migrate] Converted {len(report.definitions)} object(s), skipped {len(report.failures)}",
        file=sys.stderr,
    )
    for failure in report.failures:
        print(f"[migrate]   {failure.object_type} {failure.object_name}: {failure.error}", file=sys.stderr)

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
