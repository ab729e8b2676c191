"""AI suggestion service for task categorisation, due dates and related tasks."""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, Optional, Protocol, Type, TypeVar

from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from ..config import Settings
from ..models.task import utc_now
from ..schemas import (
    AISuggestions,
    CategorizeTaskOutput,
    CategorySuggestion,
    DueDateOutput,
    DueDateSuggestion,
    TaskSuggestionsOutput,
)
from ..utils.logging import TimedOperation

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"
FALLBACK_CATEGORY = "Uncategorized"
DEFAULT_HISTORICAL_DATA = "No historical data available."

OutputT = TypeVar("OutputT", bound=BaseModel)


SUGGEST_TASKS_PROMPT = ChatPromptTemplate.from_messages([
    ("system",
     "You are a task management assistant. Given a task description, you will suggest "
     "similar and relevant tasks, categorize the task, and suggest an optimal due date "
     "in YYYY-MM-DD format. Today is {today}."),
    ("human", "Task Description: {task_description}"),
])

CATEGORIZE_TASK_PROMPT = ChatPromptTemplate.from_messages([
    ("system",
     "You are a task categorization expert. Given a task description, determine the most "
     "appropriate category, a suggested due date in YYYY-MM-DD format, and list similar "
     "tasks. Today is {today}."),
    ("human", "Task Description: {description}"),
])

DUE_DATE_PROMPT = ChatPromptTemplate.from_messages([
    ("system",
     "You are an AI assistant that suggests optimal due dates for tasks. Based on the task "
     "description and historical data, determine an appropriate due date. Consider the "
     "complexity of the task, the user's past performance, and any relevant deadlines. "
     "Provide the due date in YYYY-MM-DD format. Today is {today}."),
    ("human", "Task Description: {task_description}\nHistorical Data: {historical_data}"),
])


class SuggestionProvider(Protocol):
    """Generative model capability. Every method may raise."""

    async def suggest_tasks(self, description: str) -> TaskSuggestionsOutput:
        ...

    async def categorize_task(self, description: str) -> CategorizeTaskOutput:
        ...

    async def suggest_due_date(self, description: str, historical_data: str) -> DueDateOutput:
        ...


class LangChainSuggestionProvider:
    """SuggestionProvider backed by an OpenAI chat model with structured output."""

    def __init__(self, llm: ChatOpenAI, clock: Callable[[], datetime] = utc_now):
        """Initialize the provider.

        Args:
            llm: Chat model used for all prompts
            clock: Returns the current time, used to tell the model today's date
        """
        self.llm = llm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "LangChainSuggestionProvider":
        """Build a provider from application settings."""
        llm = ChatOpenAI(
            model=settings.model_name,
            api_key=settings.openai_api_key,
            temperature=settings.temperature,
            timeout=settings.suggestion_timeout_seconds,
        )
        return cls(llm)

    async def _run(self, prompt: ChatPromptTemplate, schema: Type[OutputT], **variables) -> OutputT:
        messages = await prompt.ainvoke({"today": self._clock().date().isoformat(), **variables})
        result = await self.llm.with_structured_output(schema).ainvoke(messages)
        if not isinstance(result, schema):
            result = schema.model_validate(result)
        return result

    async def suggest_tasks(self, description: str) -> TaskSuggestionsOutput:
        return await self._run(SUGGEST_TASKS_PROMPT, TaskSuggestionsOutput, task_description=description)

    async def categorize_task(self, description: str) -> CategorizeTaskOutput:
        return await self._run(CATEGORIZE_TASK_PROMPT, CategorizeTaskOutput, description=description)

    async def suggest_due_date(self, description: str, historical_data: str) -> DueDateOutput:
        return await self._run(
            DUE_DATE_PROMPT,
            DueDateOutput,
            task_description=description,
            historical_data=historical_data,
        )


class SuggestionService:
    """Calls the suggestion provider and substitutes fixed defaults on failure.

    Failures of the provider (errors, timeouts, malformed output, or no provider
    configured at all) are logged and never reach the caller.
    """

    def __init__(
        self,
        provider: Optional[SuggestionProvider],
        timeout_seconds: float = 20.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self._clock = clock

        if provider is None:
            logger.warning("No suggestion provider configured; suggestions will use defaults")
        else:
            logger.info(f"Suggestion service initialized with {type(provider).__name__}")

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    def _days_from_today(self, days: int) -> str:
        today: date = self._clock().date()
        return (today + timedelta(days=days)).isoformat()

    async def _call(self, operation: str, call: Callable[[], Awaitable[OutputT]]) -> OutputT:
        if self.provider is None:
            raise RuntimeError("Suggestion provider not configured")
        with TimedOperation(operation, logger_name=__name__):
            return await asyncio.wait_for(call(), timeout=self.timeout_seconds)

    async def get_ai_suggestions(self, description: str) -> AISuggestions:
        """Suggest related tasks, a category and a due date.

        Args:
            description: Free-text task description

        Returns:
            Suggestion bundle; defaults when the description is blank or the provider fails
        """
        if not description.strip():
            return AISuggestions(category=DEFAULT_CATEGORY, optimal_due_date=self._days_from_today(7))

        try:
            result = await self._call("suggest_tasks", lambda: self.provider.suggest_tasks(description))
        except Exception as e:
            logger.error(f"Error getting AI task suggestions: {e!r}")
            return AISuggestions(category=FALLBACK_CATEGORY, optimal_due_date=self._days_from_today(3))

        return AISuggestions(
            suggested_tasks=result.suggested_tasks,
            category=result.category,
            optimal_due_date=result.optimal_due_date,
        )

    async def get_smart_category(self, description: str) -> CategorySuggestion:
        """Suggest a category (and possibly a due date) for a task."""
        if not description.strip():
            return CategorySuggestion(category=DEFAULT_CATEGORY)

        try:
            result = await self._call("categorize_task", lambda: self.provider.categorize_task(description))
        except Exception as e:
            logger.error(f"Error getting smart category: {e!r}")
            return CategorySuggestion(category=FALLBACK_CATEGORY)

        return CategorySuggestion(category=result.category, suggested_due_date=result.suggested_due_date)

    async def get_optimal_due_date(
        self,
        description: str,
        historical_data: str = DEFAULT_HISTORICAL_DATA,
    ) -> DueDateSuggestion:
        """Suggest a due date with reasoning.

        Args:
            description: Free-text task description
            historical_data: Summary of past completions given to the model

        Returns:
            Due date suggestion; defaults when the description is blank or the provider fails
        """
        if not description.strip():
            return DueDateSuggestion(suggested_due_date=self._days_from_today(7), reasoning="Default due date.")

        try:
            result = await self._call(
                "suggest_due_date",
                lambda: self.provider.suggest_due_date(description, historical_data),
            )
        except Exception as e:
            logger.error(f"Error getting optimal due date: {e!r}")
            return DueDateSuggestion(
                suggested_due_date=self._days_from_today(5),
                reasoning="Fell back to default due to error.",
            )

        return DueDateSuggestion(suggested_due_date=result.suggested_due_date, reasoning=result.reasoning)


def build_suggestion_service(settings: Settings) -> SuggestionService:
    """Create the suggestion service, with a provider only when an API key is set."""
    provider = LangChainSuggestionProvider.from_settings(settings) if settings.openai_api_key else None
    return SuggestionService(provider, timeout_seconds=settings.suggestion_timeout_seconds)
