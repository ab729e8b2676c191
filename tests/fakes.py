"""Deterministic stand-ins for the clock and the suggestion provider."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from taskzen.models.task import Task, TaskPriority, TaskStatus
from taskzen.schemas import CategorizeTaskOutput, DueDateOutput, TaskSuggestionsOutput

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeSuggestionProvider:
    """Deterministic SuggestionProvider that records its calls."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[tuple] = []

    async def suggest_tasks(self, description: str) -> TaskSuggestionsOutput:
        self.calls.append(("suggest_tasks", description))
        if self.error:
            raise self.error
        return TaskSuggestionsOutput(
            suggested_tasks=["Book venue", "Send invites"],
            category="Events",
            optimal_due_date="2024-05-10",
        )

    async def categorize_task(self, description: str) -> CategorizeTaskOutput:
        self.calls.append(("categorize_task", description))
        if self.error:
            raise self.error
        return CategorizeTaskOutput(category="Shopping", suggested_due_date="2024-05-02")

    async def suggest_due_date(self, description: str, historical_data: str) -> DueDateOutput:
        self.calls.append(("suggest_due_date", description, historical_data))
        if self.error:
            raise self.error
        return DueDateOutput(suggested_due_date="2024-05-08", reasoning="About a week of work.")


def make_task(
    title: str,
    description: Optional[str] = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    status: TaskStatus = TaskStatus.PENDING,
    due_date: Optional[datetime] = None,
    created_at: datetime = FIXED_NOW,
) -> Task:
    """Build a task directly, bypassing the store."""
    return Task(
        title=title,
        description=description,
        priority=priority,
        status=status,
        due_date=due_date,
        created_at=created_at,
        updated_at=created_at,
    )
