"""In-memory sorting, searching and paging over a task snapshot.

Everything here is pure: inputs are never mutated and no store calls are made.
"""

from __future__ import annotations

import math
from dataclasses import fields
from functools import cmp_to_key
from typing import Any, List, Optional, Sequence

from .models import Task

DEFAULT_PAGE_SIZE = 5

SORT_KEYS: tuple[str, ...] = tuple(f.name for f in fields(Task))
# Reference fields compare by their nested title.
_NESTED_TITLE_KEYS = frozenset({"priority", "assigned_by"})


def _sort_value(task: Task, key: str) -> Any:
    value = getattr(task, key)
    if key in _NESTED_TITLE_KEYS:
        return value.title if value is not None else None
    return value


def sort_tasks(tasks: Sequence[Task], key: str, descending: bool = False) -> List[Task]:
    """Return a new list ordered by ``key``.

    Values compare as strings by code point. Missing values always go last,
    whichever the direction, and ties keep their input order.

    Raises:
        ValueError: if ``key`` is not a task field
    """
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {key}")

    def compare(a: Task, b: Task) -> int:
        value_a = _sort_value(a, key)
        value_b = _sort_value(b, key)

        if value_a is None or value_b is None:
            if value_a is None and value_b is None:
                return 0
            return 1 if value_a is None else -1

        final_a = str(value_a)
        final_b = str(value_b)
        if final_a < final_b:
            return 1 if descending else -1
        if final_a > final_b:
            return -1 if descending else 1
        return 0

    return sorted(tasks, key=cmp_to_key(compare))


def matches_query(task: Task, query: str) -> bool:
    """Return True when any text field, priority or assignee contains ``query``."""

    lowered = query.lower()
    for field in fields(task):
        value = getattr(task, field.name)
        if isinstance(value, str) and lowered in value.lower():
            return True
    if task.assigned_by is not None and lowered in task.assigned_by.title.lower():
        return True
    if task.priority is not None and lowered in task.priority.title.lower():
        return True
    return False


def filter_tasks(tasks: Sequence[Task], query: Optional[str]) -> List[Task]:
    """Search the full snapshot; an empty query keeps every task."""

    if not query:
        return list(tasks)
    return [task for task in tasks if matches_query(task, query)]


def total_pages(count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    return math.ceil(count / page_size)


def get_page(
    tasks: Sequence[Task], page: int, page_size: int = DEFAULT_PAGE_SIZE
) -> List[Task]:
    """Return the 1-based ``page`` of ``tasks``."""

    if page_size < 1:
        raise ValueError("page_size must be positive")
    if page < 1:
        return []
    start = (page - 1) * page_size
    return list(tasks[start : start + page_size])


def clamp_page(page: int, count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Keep previous/next navigation inside ``[1, total_pages]``."""

    last = max(1, total_pages(count, page_size))
    return max(1, min(page, last))


def parse_page_input(
    raw: Any, count: int, page_size: int = DEFAULT_PAGE_SIZE
) -> Optional[int]:
    """Validate a typed page number; out-of-range or non-numeric input gives None."""

    try:
        page = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if 0 < page <= total_pages(count, page_size):
        return page
    return None


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "SORT_KEYS",
    "sort_tasks",
    "matches_query",
    "filter_tasks",
    "total_pages",
    "get_page",
    "clamp_page",
    "parse_page_input",
]
