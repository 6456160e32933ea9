"""Signed audit trail of group console changes.

Every create, edit and remove of a group and every member removal is
appended as one JSON object per line to AUDIT_LOG_FILE. Events carry an
HMAC-SHA256 signature over their canonical JSON when a signing key is
configured (AUDIT_LOG_SIGNING_KEY or the audit_log_signing_key secret).

Usage:
    python scripts/audit.py                 # verify signatures
    python scripts/audit.py --group admins  # list events for one group
"""
from __future__ import annotations
import argparse
import datetime
import hashlib
import hmac
import json
import os
import sys
from pathlib import Path
from typing import Any, Iterator, Literal

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from groupconsole.config.settings import load_secret

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "group-events.jsonl"

EventType = Literal["group_create", "group_edit", "group_remove", "member_remove"]


def _get_signing_key() -> bytes:
    """Resolve the signing key; an empty key means events are written unsigned."""
    # set but empty disables signing even when a secret file exists
    if "AUDIT_LOG_SIGNING_KEY" in os.environ:
        return os.environ["AUDIT_LOG_SIGNING_KEY"].strip().encode("utf-8")
    return (load_secret("audit_log_signing_key") or "").encode("utf-8")


def _sign_event(event: dict[str, Any], signing_key: bytes) -> str:
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_group_event(
    event_type: EventType,
    group_name: str,
    *,
    backend: str,
    operator: str = "console",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a group event to the audit trail.

    Args:
        event_type: Type of group operation
        group_name: Group affected by the operation
        backend: User group backend the operation ran against
        operator: Who performed the operation
        details: Additional context (new name, removed user, error, ...)
        success: Whether the operation succeeded
    """
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "backend": backend,
        "group_name": group_name,
        "operator": operator,
        "success": success,
        "details": details or {},
    }
    signing_key = _get_signing_key()
    if signing_key:
        event["signature"] = _sign_event(event, signing_key)

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")
    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_group_event(event_type: EventType, group_name: str, **kwargs: Any) -> bool:
    """Like log_group_event but never raises.

    Returns:
        True if the event was written, False if writing failed (reported on stderr)
    """
    try:
        log_group_event(event_type, group_name, **kwargs)
        return True
    except Exception as e:
        print(f"[audit] Warning: Failed to log {event_type} event for group {group_name}: {e}", file=sys.stderr)
        return False


def iter_events() -> Iterator[dict[str, Any]]:
    """Yield logged events in file order; unreadable lines yield an empty dict."""
    if not AUDIT_LOG_FILE.exists():
        return
    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                event = {}
            yield event if isinstance(event, dict) else {}


def verify_event(event: dict[str, Any], signing_key: bytes) -> bool:
    stored = event.get("signature")
    if not stored or not signing_key:
        return False
    unsigned = {key: value for key, value in event.items() if key != "signature"}
    return hmac.compare_digest(stored, _sign_event(unsigned, signing_key))


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    signing_key = _get_signing_key()
    total = valid = 0
    for event in iter_events():
        total += 1
        if verify_event(event, signing_key):
            valid += 1
    return total, valid


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Group console audit trail")
    parser.add_argument("--group", help="Print the events recorded for this group")
    args = parser.parse_args(argv)

    if args.group:
        for event in iter_events():
            if event.get("group_name") == args.group:
                print(json.dumps(event, ensure_ascii=False))
        return 0

    total, valid = verify_audit_log()
    print(f"[audit] {valid}/{total} events with valid signatures")
    return 0 if total == valid else 1


if __name__ == "__main__":
    sys.exit(main())
