"""AI suggestion routes.

These never fail because of the model service: the suggestion service answers with
fixed defaults whenever the provider errors or is not configured.
"""

import logging

from fastapi import APIRouter, Depends

from ..deps import get_suggestion_service, require_api_key
from ..schemas import (
    AISuggestions,
    CategorySuggestion,
    DueDateRequest,
    DueDateSuggestion,
    SuggestionRequest,
)
from ..services.suggestion_service import DEFAULT_HISTORICAL_DATA, SuggestionService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_api_key)])


@router.post("/tasks", response_model=AISuggestions)
async def suggest_tasks(
    request: SuggestionRequest,
    suggestion_service: SuggestionService = Depends(get_suggestion_service)
) -> AISuggestions:
    """Suggest related tasks, a category and a due date for a task description."""
    logger.info(f"Task suggestions requested for: {request.description[:100]}")
    return await suggestion_service.get_ai_suggestions(request.description)


@router.post("/category", response_model=CategorySuggestion)
async def suggest_category(
    request: SuggestionRequest,
    suggestion_service: SuggestionService = Depends(get_suggestion_service)
) -> CategorySuggestion:
    """Suggest a category for a task description."""
    logger.info(f"Category requested for: {request.description[:100]}")
    return await suggestion_service.get_smart_category(request.description)


@router.post("/due-date", response_model=DueDateSuggestion)
async def suggest_due_date(
    request: DueDateRequest,
    suggestion_service: SuggestionService = Depends(get_suggestion_service)
) -> DueDateSuggestion:
    """Suggest a due date for a task description.

    Args:
        request: Description and optional completion history
        suggestion_service: Suggestion service instance

    Returns:
        Suggested date with the model's reasoning
    """
    logger.info(f"Due date requested for: {request.description[:100]}")
    historical_data = request.historical_data
    if historical_data is None:
        historical_data = DEFAULT_HISTORICAL_DATA

    return await suggestion_service.get_optimal_due_date(request.description, historical_data)
