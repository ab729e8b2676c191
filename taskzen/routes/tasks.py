"""Task management CRUD routes."""

import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ..deps import get_task_service, require_api_key
from ..models.task import Task, TaskPriority, TaskStatus
from ..schemas import TaskCreate, TaskResponse, TaskStatusUpdate, TaskUpdate
from ..services.query_engine import SortField, SortOrder, TaskFilters, filter_and_sort_tasks
from ..services.task_service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter()

TASK_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"

TaskId = Annotated[str, Path(pattern=TASK_ID_PATTERN, description="Task identifier")]


def _to_response(task: Task) -> TaskResponse:
    return TaskResponse.model_validate(task)


def _not_found(task_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Task {task_id} not found"
    )


@router.post(
    "/",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_key)],
)
async def create_task(
    task_data: TaskCreate,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Create a new task.

    Args:
        task_data: Task creation data
        task_service: Task service instance

    Returns:
        Created task response

    Raises:
        HTTPException: If the title is blank
    """
    try:
        logger.info(f"Creating new task: {task_data.title}")
        task = task_service.create_task_from_schema(task_data)
        return _to_response(task)

    except ValueError as e:
        logger.error(f"Validation error creating task: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/", response_model=List[TaskResponse])
async def list_tasks(
    status_filter: List[TaskStatus] = Query([], alias="status"),
    priority_filter: List[TaskPriority] = Query([], alias="priority"),
    q: str = Query("", max_length=200, description="Search text for title or description"),
    sort_by: SortField = Query(SortField.CREATED_AT),
    sort_order: SortOrder = Query(SortOrder.DESC),
    task_service: TaskService = Depends(get_task_service)
) -> List[TaskResponse]:
    """List tasks filtered and ordered for display.

    Args:
        status_filter: Acceptable statuses; none means all
        priority_filter: Acceptable priorities; none means all
        q: Case-insensitive search text
        sort_by: Field to order by
        sort_order: Sort direction
        task_service: Task service instance

    Returns:
        List of task responses
    """
    filters = TaskFilters(
        status=status_filter,
        priority=priority_filter,
        search_term=q,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    logger.debug(f"Listing tasks with filters: {filters.model_dump(mode='json')}")

    tasks = filter_and_sort_tasks(task_service.list_tasks(), filters)
    return [_to_response(task) for task in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: TaskId,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Get a specific task by ID.

    Raises:
        HTTPException: If task not found
    """
    logger.debug(f"Getting task: {task_id}")

    task = task_service.get_task(task_id)
    if not task:
        raise _not_found(task_id)

    return _to_response(task)


@router.patch("/{task_id}", response_model=TaskResponse, dependencies=[Depends(require_api_key)])
async def update_task(
    task_id: TaskId,
    task_data: TaskUpdate,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Update a task.

    Args:
        task_id: Task ID
        task_data: Task update data; only the fields present are changed
        task_service: Task service instance

    Returns:
        Updated task response

    Raises:
        HTTPException: If task not found or the new title is blank
    """
    try:
        logger.info(f"Updating task: {task_id}")
        task = task_service.update_task(task_id, task_data)

    except ValueError as e:
        logger.error(f"Validation error updating task {task_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not task:
        raise _not_found(task_id)

    return _to_response(task)


@router.put("/{task_id}/status", response_model=TaskResponse, dependencies=[Depends(require_api_key)])
async def update_task_status(
    task_id: TaskId,
    status_data: TaskStatusUpdate,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Set a task's status to any value."""
    logger.info(f"Setting task {task_id} status to {status_data.status.value}")

    task = task_service.update_task_status(task_id, status_data.status)
    if not task:
        raise _not_found(task_id)

    return _to_response(task)


@router.post("/{task_id}/toggle", response_model=TaskResponse, dependencies=[Depends(require_api_key)])
async def toggle_task(
    task_id: TaskId,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Mark a task completed, or back to pending if it already was."""
    task = task_service.toggle_task_completion(task_id)
    if not task:
        raise _not_found(task_id)

    return _to_response(task)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_api_key)],
)
async def delete_task(
    task_id: TaskId,
    task_service: TaskService = Depends(get_task_service)
) -> None:
    """Delete a task.

    Raises:
        HTTPException: If task not found
    """
    logger.info(f"Deleting task: {task_id}")

    if not task_service.delete_task(task_id):
        raise _not_found(task_id)
