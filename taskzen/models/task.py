"""Domain models for the task manager."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import AfterValidator, BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_task_id() -> str:
    """Generate an opaque task identifier."""
    return uuid4().hex


def as_utc(value: datetime) -> datetime:
    """Read a timezone-less datetime as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class TaskStatus(str, Enum):
    """Task status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskRecurrence(str, Enum):
    """How often a recurring task repeats."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    NONE = "none"


class Task(BaseModel):
    """Task domain model."""

    id: str = Field(default_factory=new_task_id, description="Unique task identifier")
    title: str = Field(..., min_length=1, max_length=200, description="Task title")
    description: Optional[str] = Field(None, max_length=2000, description="Task description")
    due_date: Optional[UtcDatetime] = Field(None, description="When the task is due")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Task status")
    category: Optional[str] = Field(None, max_length=100, description="Task category")
    created_by: Optional[str] = Field(None, description="User ID of the creator")
    assigned_to: Optional[str] = Field(None, description="User ID of the assignee")
    is_recurring: bool = Field(default=False, description="Whether the task repeats")
    recurrence_pattern: TaskRecurrence = Field(default=TaskRecurrence.NONE, description="Repeat interval")
    created_at: UtcDatetime = Field(default_factory=utc_now, description="Task creation timestamp")
    updated_at: UtcDatetime = Field(default_factory=utc_now, description="Task last update timestamp")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Task title cannot be empty")
        return value

    @property
    def is_completed(self) -> bool:
        """Whether the task is done."""
        return self.status == TaskStatus.COMPLETED
