"""Parse paging, sorting and filter controls from list requests."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from groupconsole.core.exceptions import QueryError
from groupconsole.core.filters import FilterChain, from_query_args

# Request parameters that steer the view instead of filtering rows
CONTROL_PARAMS = frozenset({
    "backend", "group", "limit", "page", "sort", "dir", "format", "redirect", "csrf_token",
})


@dataclass
class ListControls:
    page: int
    limit: int
    sort: Optional[str]
    direction: Optional[str]
    filter: FilterChain

    def as_args(self) -> dict:
        """Query arguments that reproduce these controls (for pager links)."""
        args = {"page": self.page, "limit": self.limit}
        if self.sort:
            args["sort"] = self.sort
        if self.direction:
            args["dir"] = self.direction
        return args


def _int_arg(args, name: str, default: int) -> int:
    raw = (args.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise QueryError(f"Parameter '{name}' must be an integer") from None


def parse_list_controls(args, default_limit: int) -> ListControls:
    """Read page/limit/sort/dir and the remaining filter arguments.

    Raises:
        QueryError: On non-integer paging values
    """
    return ListControls(
        page=_int_arg(args, "page", 1),
        limit=_int_arg(args, "limit", default_limit),
        sort=(args.get("sort") or "").strip() or None,
        direction=(args.get("dir") or "").strip() or None,
        filter=from_query_args(args, ignore=CONTROL_PARAMS),
    )
