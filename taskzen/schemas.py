"""API request/response schemas for the task manager."""

from datetime import date, datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field

from .models.task import TaskPriority, TaskRecurrence, TaskStatus, UtcDatetime


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Task-related schemas
class TaskCreate(BaseModel):
    """Schema for creating a new task.

    Status, identity and timestamps are assigned by the store, so any such keys in
    the payload are dropped.
    """
    title: str = Field(..., min_length=1, max_length=200, description="Task title")
    description: Optional[str] = Field(None, max_length=2000, description="Task description")
    due_date: Optional[UtcDatetime] = Field(None, description="When the task is due")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    category: Optional[str] = Field(None, max_length=100, description="Task category")
    created_by: Optional[str] = Field(None, description="User ID of the creator")
    assigned_to: Optional[str] = Field(None, description="User ID of the assignee")
    is_recurring: bool = Field(default=False, description="Whether the task repeats")
    recurrence_pattern: TaskRecurrence = Field(default=TaskRecurrence.NONE, description="Repeat interval")

    model_config = {"extra": "ignore"}


class TaskUpdate(BaseModel):
    """Schema for updating an existing task.

    Only fields that were explicitly set are applied.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=200, description="Task title")
    description: Optional[str] = Field(None, max_length=2000, description="Task description")
    due_date: Optional[UtcDatetime] = Field(None, description="When the task is due")
    priority: Optional[TaskPriority] = Field(None, description="Task priority")
    status: Optional[TaskStatus] = Field(None, description="Task status")
    category: Optional[str] = Field(None, max_length=100, description="Task category")
    assigned_to: Optional[str] = Field(None, description="User ID of the assignee")
    is_recurring: Optional[bool] = Field(None, description="Whether the task repeats")
    recurrence_pattern: Optional[TaskRecurrence] = Field(None, description="Repeat interval")

    model_config = {"extra": "ignore"}


class TaskStatusUpdate(BaseModel):
    """Schema for setting a task's status."""
    status: TaskStatus = Field(..., description="New task status")


class TaskResponse(BaseModel):
    """Schema for task API responses."""
    id: str = Field(..., description="Unique task identifier")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    due_date: Optional[datetime] = Field(None, description="When the task is due")
    priority: TaskPriority = Field(..., description="Task priority")
    status: TaskStatus = Field(..., description="Task status")
    category: Optional[str] = Field(None, description="Task category")
    created_by: Optional[str] = Field(None, description="User ID of the creator")
    assigned_to: Optional[str] = Field(None, description="User ID of the assignee")
    is_recurring: bool = Field(default=False, description="Whether the task repeats")
    recurrence_pattern: TaskRecurrence = Field(default=TaskRecurrence.NONE, description="Repeat interval")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")

    model_config = {"from_attributes": True}


# Suggestion-related schemas
class SuggestionRequest(BaseModel):
    """Schema for suggestion requests carrying a task description."""
    description: str = Field(..., max_length=2000, description="Free-text task description")


class DueDateRequest(SuggestionRequest):
    """Schema for due date suggestion requests."""
    historical_data: Optional[str] = Field(None, max_length=8000, description="Past completion history")


def _check_iso_date(value: str) -> str:
    value = value.strip()
    date.fromisoformat(value)
    return value


IsoDateStr = Annotated[str, AfterValidator(_check_iso_date)]


class TaskSuggestionsOutput(BaseModel):
    """Structured output of the related-task suggestion prompt."""
    suggested_tasks: List[str] = Field(..., description="Similar and relevant tasks to the input task")
    category: str = Field(..., description="The category that this task belongs to")
    optimal_due_date: IsoDateStr = Field(..., description="The optimal due date for the task, in YYYY-MM-DD format")


class CategorizeTaskOutput(BaseModel):
    """Structured output of the categorisation prompt."""
    category: str = Field(..., description="The predicted category of the task")
    suggested_due_date: Optional[IsoDateStr] = Field(None, description="A suggested due date, in YYYY-MM-DD format")
    similar_tasks: List[str] = Field(default_factory=list, description="A list of similar tasks")


class DueDateOutput(BaseModel):
    """Structured output of the due date prompt."""
    suggested_due_date: IsoDateStr = Field(..., description="The suggested due date, in YYYY-MM-DD format")
    reasoning: str = Field(..., description="The reasoning behind the suggested due date")


class AISuggestions(BaseModel):
    """Suggestion bundle returned to API callers."""
    suggested_tasks: Optional[List[str]] = Field(None, description="Related task titles")
    category: Optional[str] = Field(None, description="Suggested category")
    optimal_due_date: Optional[str] = Field(None, description="Suggested due date (YYYY-MM-DD)")


class CategorySuggestion(BaseModel):
    """Category suggestion returned to API callers."""
    category: str = Field(..., description="Suggested category")
    suggested_due_date: Optional[str] = Field(None, description="Suggested due date (YYYY-MM-DD)")


class DueDateSuggestion(BaseModel):
    """Due date suggestion returned to API callers."""
    suggested_due_date: str = Field(..., description="Suggested due date (YYYY-MM-DD)")
    reasoning: str = Field(..., description="Why this date was chosen")


# Health check schema
class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(default_factory=_utc_now, description="Health check timestamp")
    version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(..., description="Deployment environment name")
    task_count: int = Field(..., description="Number of tasks in the store")
    suggestions_enabled: bool = Field(..., description="Whether an AI provider is configured")
