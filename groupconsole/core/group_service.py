"""Group listing, lookup and membership operations.

This module holds the framework-free part of the group console: the Flask
blueprint parses requests, calls these functions and renders the results.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from .capabilities import Reducible, capability_name
from .exceptions import GroupNotFoundError, QueryError, UnsupportedCapabilityError
from .filters import Filter, match_all, where
from .query import Query

logger = logging.getLogger(__name__)

GROUP_SORT_COLUMNS = {
    "group_name": "Group",
    "parent_name": "Parent",
    "created_at": "Created at",
    "last_modified": "Last modified",
}

MEMBER_SORT_COLUMNS = {
    "user_name": "Username",
    "created_at": "Created at",
    "last_modified": "Last modified",
}

Notifier = Callable[[str, str], None]


@dataclass
class Page:
    """One page of query results."""
    items: list[dict[str, Any]]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.limit)) if self.limit else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "pages": self.pages,
        }


@dataclass
class MemberRemoval:
    """Outcome of removing one user from a group."""
    user_name: str
    success: bool
    message: str


def paginate(query: Query, page: int = 1, limit: int = 25) -> Page:
    """Fetch one page from a query.

    Raises:
        QueryError: If page or limit is not positive
    """
    if page < 1 or limit < 1:
        raise QueryError("Page and limit must be positive")
    total = query.count()
    items = query.limit(limit, (page - 1) * limit).fetch_all()
    return Page(items=items, total=total, page=page, limit=limit)


def _apply_sort(query: Query, sortable: dict[str, str], sort: Optional[str], direction: Optional[str]) -> Query:
    if not sort:
        return query.order(next(iter(sortable)), direction or "asc")
    if sort not in sortable:
        raise QueryError(f"Cannot sort by '{sort}' (allowed: {', '.join(sortable)})")
    return query.order(sort, direction or "asc")


def list_groups(
    backend,
    filter: Optional[Filter] = None,
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    page: int = 1,
    limit: int = 25,
) -> Page:
    """List group summaries of one backend."""
    query = backend.select(list(GROUP_SORT_COLUMNS)).apply_filter(filter)
    return paginate(_apply_sort(query, GROUP_SORT_COLUMNS, sort, direction), page, limit)


def get_group(backend, group_name: str) -> dict[str, Any]:
    """Fetch one group's metadata.

    Raises:
        GroupNotFoundError: If the group does not exist
    """
    group = backend.select(list(GROUP_SORT_COLUMNS)).where("group_name", group_name).fetch_row()
    if group is None:
        raise GroupNotFoundError(group_name)
    return group


def group_exists(backend, group_name: str) -> bool:
    return backend.select().where("group_name", group_name).count() > 0


def list_members(
    backend,
    group_name: str,
    filter: Optional[Filter] = None,
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    page: int = 1,
    limit: int = 25,
) -> Page:
    """List the members of one group."""
    query = backend.select(["user_name", "created_at", "last_modified"], table="group_membership")
    query.where("group_name", group_name).apply_filter(filter)
    return paginate(_apply_sort(query, MEMBER_SORT_COLUMNS, sort, direction), page, limit)


def remove_members(
    backend,
    group_name: str,
    user_names: Iterable[str],
    notify: Optional[Notifier] = None,
) -> list[MemberRemoval]:
    """Remove users from a group one by one.

    Every user is attempted; a failure for one user is reported and does
    not stop the remaining removals. Nothing is rolled back.

    Args:
        backend: Reducible backend
        group_name: Group to remove members from
        user_names: Users to remove
        notify: Optional callback(message, category) with category "success" or "error"

    Raises:
        UnsupportedCapabilityError: If the backend is not reducible
    """
    if not isinstance(backend, Reducible):
        raise UnsupportedCapabilityError(backend.name, capability_name(Reducible))

    results = []
    for user_name in user_names:
        try:
            backend.delete(
                "group_membership",
                match_all(where("group_name", group_name), where("user_name", user_name)),
            )
            result = MemberRemoval(
                user_name, True, f'User "{user_name}" has been removed from group "{group_name}"'
            )
        except Exception as exc:
            logger.warning("Failed to remove %s from group %s: %s", user_name, group_name, exc, exc_info=True)
            result = MemberRemoval(user_name, False, str(exc))
        if notify is not None:
            notify(result.message, "success" if result.success else "error")
        results.append(result)
    return results
