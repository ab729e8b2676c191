"""Task service for CRUD operations and task lifecycle management."""

import logging
from datetime import datetime, timedelta
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional

from ..models.task import (
    Task,
    TaskPriority,
    TaskRecurrence,
    TaskStatus,
    new_task_id,
    utc_now,
)
from ..schemas import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

# Fields that may be cleared by explicitly sending null in an update
NULLABLE_FIELDS = frozenset({"description", "due_date", "category", "assigned_to"})

# Fields owned by the store; never taken from update payloads
PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at"})

_CLOCK_STEP = timedelta(microseconds=1)


def validate_task_id(task_id: str) -> str:
    """Reject anything that is not a non-empty string id.

    Raises:
        ValueError: If the id is malformed
    """
    if not isinstance(task_id, str) or not task_id.strip():
        raise ValueError("Invalid task id")
    return task_id


def _clean_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise ValueError("Task title cannot be empty")
    return title.strip()


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class TaskService:
    """Service for task CRUD operations with in-memory storage.

    The collection is insertion-ordered. A single lock serialises writers and
    snapshot reads; every task handed out is a deep copy.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        initial_tasks: Optional[Iterable[Task]] = None,
    ):
        """Initialize the task service.

        Args:
            clock: Returns the current time as an aware datetime
            initial_tasks: Tasks to pre-load, in order
        """
        self._tasks: Dict[str, Task] = {}
        self._lock = Lock()
        self._clock = clock

        for task in initial_tasks or ():
            if task.id in self._tasks:
                raise ValueError(f"Duplicate task id {task.id}")
            self._tasks[task.id] = task.model_copy(deep=True)

        logger.info(f"Task service initialized with {len(self._tasks)} task(s) in memory")

    def _next_id(self) -> str:
        task_id = new_task_id()
        while task_id in self._tasks:
            task_id = new_task_id()
        return task_id

    def _touch(self, task: Task) -> None:
        """Advance updated_at; never equal to or behind the previous value."""
        now = self._clock()
        if now <= task.updated_at:
            now = task.updated_at + _CLOCK_STEP
        task.updated_at = now

    def list_tasks(self) -> List[Task]:
        """Return copies of all tasks in insertion order."""
        with self._lock:
            tasks = [task.model_copy(deep=True) for task in self._tasks.values()]

        logger.debug(f"Listed {len(tasks)} tasks")
        return tasks

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by ID.

        Args:
            task_id: Task ID

        Returns:
            Copy of the task if found, None otherwise
        """
        validate_task_id(task_id)

        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                logger.debug(f"Task {task_id} not found")
                return None
            return task.model_copy(deep=True)

    def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        due_date: Optional[datetime] = None,
        category: Optional[str] = None,
        created_by: Optional[str] = None,
        assigned_to: Optional[str] = None,
        is_recurring: bool = False,
        recurrence_pattern: TaskRecurrence = TaskRecurrence.NONE,
    ) -> Task:
        """Create a new pending task.

        Args:
            title: Task title
            description: Optional task description
            priority: Task priority
            due_date: Optional due date
            category: Optional category
            created_by: Optional creator user ID
            assigned_to: Optional assignee user ID
            is_recurring: Whether the task repeats
            recurrence_pattern: Repeat interval

        Returns:
            Copy of the created task

        Raises:
            ValueError: If title is empty or whitespace
        """
        title = _clean_title(title)

        with self._lock:
            now = self._clock()
            task = Task(
                id=self._next_id(),
                title=title,
                description=_clean_text(description),
                due_date=due_date,
                priority=priority,
                status=TaskStatus.PENDING,
                category=_clean_text(category),
                created_by=created_by,
                assigned_to=assigned_to,
                is_recurring=is_recurring,
                recurrence_pattern=recurrence_pattern,
                created_at=now,
                updated_at=now,
            )
            self._tasks[task.id] = task

            logger.info(f"Created task {task.id}: {task.title}")
            return task.model_copy(deep=True)

    def create_task_from_schema(self, task_data: TaskCreate) -> Task:
        """Create a new task from schema.

        Args:
            task_data: Task creation data

        Returns:
            Copy of the created task
        """
        return self.create_task(**task_data.model_dump())

    def update_task(self, task_id: str, task_data: TaskUpdate) -> Optional[Task]:
        """Merge the explicitly set fields of ``task_data`` into a task.

        Unset fields keep their values. An explicit None clears a nullable field
        and is ignored for the rest.

        Args:
            task_id: Task ID
            task_data: Task update data

        Returns:
            Copy of the updated task if found, None otherwise

        Raises:
            ValueError: If the id is malformed or a supplied title is empty
        """
        validate_task_id(task_id)

        changes = {
            field: value
            for field, value in task_data.model_dump(exclude_unset=True).items()
            if field not in PROTECTED_FIELDS and (value is not None or field in NULLABLE_FIELDS)
        }

        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                logger.warning(f"Task {task_id} not found for update")
                return None

            if "title" in changes:
                changes["title"] = _clean_title(changes["title"])
            for field in ("description", "category"):
                if field in changes:
                    changes[field] = _clean_text(changes[field])

            for field, value in changes.items():
                setattr(task, field, value)
            self._touch(task)

            logger.info(f"Updated task {task_id} fields={sorted(changes)}")
            return task.model_copy(deep=True)

    def update_task_status(self, task_id: str, status: TaskStatus) -> Optional[Task]:
        """Update task status.

        Args:
            task_id: Task ID
            status: New status

        Returns:
            Copy of the updated task if found, None otherwise
        """
        return self.update_task(task_id, TaskUpdate(status=status))

    def toggle_task_completion(self, task_id: str) -> Optional[Task]:
        """Flip a task between completed and pending.

        Any status other than completed becomes completed.

        Args:
            task_id: Task ID

        Returns:
            Copy of the updated task if found, None otherwise
        """
        validate_task_id(task_id)

        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                logger.warning(f"Task {task_id} not found for toggle")
                return None

            old_status = task.status
            task.status = TaskStatus.PENDING if task.is_completed else TaskStatus.COMPLETED
            self._touch(task)

            logger.info(f"Toggled task {task_id} status: {old_status.value} -> {task.status.value}")
            return task.model_copy(deep=True)

    def delete_task(self, task_id: str) -> bool:
        """Delete a task.

        Args:
            task_id: Task ID

        Returns:
            True if task was deleted, False if not found
        """
        validate_task_id(task_id)

        with self._lock:
            task = self._tasks.pop(task_id, None)
            if task:
                logger.info(f"Deleted task {task_id}: {task.title}")
                return True
            else:
                logger.warning(f"Task {task_id} not found for deletion")
                return False

    def get_task_count(self) -> int:
        """Get count of tasks."""
        with self._lock:
            return len(self._tasks)

    def clear_all_tasks(self) -> int:
        """Clear all tasks.

        Returns:
            Number of tasks that were cleared
        """
        with self._lock:
            count = len(self._tasks)
            self._tasks.clear()
            logger.warning(f"Cleared all {count} tasks")
            return count


def demo_tasks(now: Optional[datetime] = None) -> List[Task]:
    """Build the two demo tasks shown to first-time users.

    Args:
        now: Reference time, defaults to the current UTC time

    Returns:
        A pending work task due tomorrow and an in-progress personal task due in two days
    """
    now = now or utc_now()
    return [
        Task(
            id="1",
            title="Initial Demo Task 1",
            description="This is the first pre-loaded task.",
            priority=TaskPriority.MEDIUM,
            status=TaskStatus.PENDING,
            due_date=now + timedelta(days=1),
            category="Work",
            created_at=now,
            updated_at=now,
        ),
        Task(
            id="2",
            title="Initial Demo Task 2 - High Priority",
            description="A high priority task that is already in progress.",
            priority=TaskPriority.HIGH,
            status=TaskStatus.IN_PROGRESS,
            due_date=now + timedelta(days=2),
            category="Personal",
            created_at=now,
            updated_at=now,
        ),
    ]
