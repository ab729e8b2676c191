"""Filtering and ordering of task snapshots for display.

Everything here is a pure function of its inputs: the task list passed in is never
mutated, and identical inputs always give identical output.
"""

import logging
import math
import unicodedata
from enum import Enum
from typing import Any, Callable, Iterable, List, Tuple

from pydantic import BaseModel, Field

from ..models.task import Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

PRIORITY_RANK = {
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


class SortField(str, Enum):
    """Fields a task list can be ordered by."""
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    TITLE = "title"
    CREATED_AT = "created_at"


class SortOrder(str, Enum):
    """Sort direction."""
    ASC = "asc"
    DESC = "desc"


class TaskFilters(BaseModel):
    """Filter specification for a task view.

    Empty status/priority lists and an empty search term place no restriction.
    """
    status: List[TaskStatus] = Field(default_factory=list, description="Acceptable statuses")
    priority: List[TaskPriority] = Field(default_factory=list, description="Acceptable priorities")
    search_term: str = Field(default="", description="Case-insensitive text to find in title or description")
    sort_by: SortField = Field(default=SortField.CREATED_AT, description="Field to order by")
    sort_order: SortOrder = Field(default=SortOrder.DESC, description="Sort direction")


def collation_key(text: str) -> Tuple[str, str, str]:
    """Locale-style collation key for ``text``.

    Compares base letters first ignoring case and accents, then accents, then
    case with lower case ahead of upper case.
    """
    folded = unicodedata.normalize("NFKD", text.casefold())
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return base, folded, text.swapcase()


def _due_date_key(task: Task) -> float:
    return task.due_date.timestamp() if task.due_date is not None else math.inf


def _priority_key(task: Task) -> int:
    return PRIORITY_RANK[task.priority]


def _title_key(task: Task) -> Tuple[str, str, str]:
    return collation_key(task.title)


def _created_at_key(task: Task) -> float:
    return task.created_at.timestamp()


_SORT_KEYS = {
    SortField.DUE_DATE: _due_date_key,
    SortField.PRIORITY: _priority_key,
    SortField.TITLE: _title_key,
    SortField.CREATED_AT: _created_at_key,
}


def sort_key(sort_by: SortField) -> Callable[[Task], Any]:
    """Key function ordering tasks by ``sort_by`` ascending."""
    return _SORT_KEYS[SortField(sort_by)]


def matches_filters(task: Task, filters: TaskFilters) -> bool:
    """Whether ``task`` passes the search, status and priority criteria."""
    if filters.search_term:
        term = filters.search_term.lower()
        in_title = term in task.title.lower()
        in_description = bool(task.description) and term in task.description.lower()
        if not (in_title or in_description):
            return False

    if filters.status and task.status not in filters.status:
        return False

    if filters.priority and task.priority not in filters.priority:
        return False

    return True


def filter_and_sort_tasks(tasks: Iterable[Task], filters: TaskFilters) -> List[Task]:
    """Derive the ordered view of ``tasks`` described by ``filters``.

    Tasks with equal sort keys keep their input order in both directions.

    Args:
        tasks: Task snapshot, typically from TaskService.list_tasks()
        filters: Filter specification

    Returns:
        New list holding the retained tasks in display order
    """
    retained = [task for task in tasks if matches_filters(task, filters)]

    # sorted() stays stable under reverse=True
    ordered = sorted(
        retained,
        key=sort_key(filters.sort_by),
        reverse=filters.sort_order == SortOrder.DESC,
    )

    logger.debug(
        f"Query kept {len(ordered)} task(s) sort_by={filters.sort_by.value} "
        f"order={filters.sort_order.value}"
    )
    return ordered
