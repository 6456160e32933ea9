"""Input validation helpers for group data."""
from __future__ import annotations
import re
from typing import Optional

_GROUP_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 ._@-]*$")


def normalize_group_name(raw: str) -> str:
    """Normalize and validate a group name.

    Args:
        raw: Raw group name input

    Returns:
        Trimmed group name

    Raises:
        ValueError: If the group name is invalid
    """
    name = (raw or "").strip()
    if not name:
        raise ValueError("Group name is required")
    if len(name) > 64:
        raise ValueError("Group name must not exceed 64 characters")
    if not _GROUP_NAME_RE.match(name):
        raise ValueError(
            "Group name may only contain letters, digits, spaces, '.', '_', '@' and '-' "
            "and must start with a letter or digit"
        )
    return name


def validate_parent_name(raw: Optional[str], group_name: str) -> Optional[str]:
    """Validate the optional parent group.

    Returns:
        Parent group name, or None when no parent is given

    Raises:
        ValueError: If the parent is invalid or the group would be its own parent
    """
    if raw is None or not raw.strip():
        return None
    parent = normalize_group_name(raw)
    if parent == group_name:
        raise ValueError("A group cannot be its own parent")
    return parent


def normalize_user_name(raw: str) -> str:
    """Validate a member user name.

    Raises:
        ValueError: If the user name is empty, too long or contains control characters
    """
    name = (raw or "").strip()
    if not name:
        raise ValueError("User name is required")
    if len(name) > 254:
        raise ValueError("User name exceeds maximum length")
    if any(ord(char) < 32 for char in name):
        raise ValueError("User name contains invalid characters")
    return name
