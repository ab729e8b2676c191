"""Tests for AI suggestions: fallback policy, LangChain provider and routes."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from langchain_core.prompt_values import ChatPromptValue

from taskzen.main import create_app
from taskzen.schemas import CategorizeTaskOutput, DueDateOutput, TaskSuggestionsOutput
from taskzen.services.suggestion_service import (
    DEFAULT_HISTORICAL_DATA,
    LangChainSuggestionProvider,
    SuggestionService,
    build_suggestion_service,
)

from fakes import FakeClock, FakeSuggestionProvider


class SlowSuggestionProvider(FakeSuggestionProvider):
    async def categorize_task(self, description: str) -> CategorizeTaskOutput:
        await asyncio.sleep(5)
        return await super().categorize_task(description)


@pytest.fixture
def service(fake_provider, clock) -> SuggestionService:
    return SuggestionService(fake_provider, timeout_seconds=1.0, clock=clock)


@pytest.fixture
def failing_service(clock) -> SuggestionService:
    return SuggestionService(FakeSuggestionProvider(error=RuntimeError("quota exceeded")), clock=clock)


class TestSuggestionService:
    """Test provider pass-through and fallback defaults."""

    @pytest.mark.asyncio
    async def test_ai_suggestions_pass_through(self, service, fake_provider):
        result = await service.get_ai_suggestions("Plan the team offsite")

        assert result.suggested_tasks == ["Book venue", "Send invites"]
        assert result.category == "Events"
        assert result.optimal_due_date == "2024-05-10"
        assert fake_provider.calls == [("suggest_tasks", "Plan the team offsite")]

    @pytest.mark.asyncio
    async def test_ai_suggestions_fallback_on_error(self, failing_service):
        result = await failing_service.get_ai_suggestions("Plan the team offsite")

        assert result.category == "Uncategorized"
        assert result.optimal_due_date == "2024-05-04"
        assert result.suggested_tasks is None

    @pytest.mark.asyncio
    async def test_ai_suggestions_blank_description(self, service, fake_provider):
        result = await service.get_ai_suggestions("   ")

        assert result.category == "General"
        assert result.optimal_due_date == "2024-05-08"
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_smart_category(self, service):
        result = await service.get_smart_category("Buy milk")

        assert result.category == "Shopping"
        assert result.suggested_due_date == "2024-05-02"

    @pytest.mark.asyncio
    async def test_smart_category_fallbacks(self, service, failing_service):
        assert (await service.get_smart_category("")).category == "General"

        result = await failing_service.get_smart_category("Buy milk")
        assert result.category == "Uncategorized"
        assert result.suggested_due_date is None

    @pytest.mark.asyncio
    async def test_smart_category_timeout(self, clock):
        service = SuggestionService(SlowSuggestionProvider(), timeout_seconds=0.05, clock=clock)

        result = await service.get_smart_category("Buy milk")

        assert result.category == "Uncategorized"

    @pytest.mark.asyncio
    async def test_optimal_due_date(self, service, fake_provider):
        result = await service.get_optimal_due_date("Write report")

        assert result.suggested_due_date == "2024-05-08"
        assert result.reasoning == "About a week of work."
        assert fake_provider.calls == [("suggest_due_date", "Write report", DEFAULT_HISTORICAL_DATA)]

    @pytest.mark.asyncio
    async def test_optimal_due_date_fallbacks(self, service, failing_service):
        blank = await service.get_optimal_due_date(" ")
        assert blank.suggested_due_date == "2024-05-08"
        assert blank.reasoning == "Default due date."

        failed = await failing_service.get_optimal_due_date("Write report", "Took 3 days last time")
        assert failed.suggested_due_date == "2024-05-06"
        assert failed.reasoning == "Fell back to default due to error."

    @pytest.mark.asyncio
    async def test_no_provider_uses_fallbacks(self, clock):
        service = SuggestionService(None, clock=clock)

        assert service.enabled is False
        assert (await service.get_ai_suggestions("Plan")).category == "Uncategorized"
        assert (await service.get_smart_category("Plan")).category == "Uncategorized"
        assert (await service.get_optimal_due_date("Plan")).suggested_due_date == "2024-05-06"


class TestOutputSchemas:
    """Model output is validated before it is trusted."""

    def test_rejects_malformed_dates(self):
        with pytest.raises(ValueError):
            DueDateOutput(suggested_due_date="next Tuesday", reasoning="soon")

    def test_accepts_iso_dates(self):
        output = CategorizeTaskOutput(category="Work", suggested_due_date=" 2024-05-02 ")

        assert output.suggested_due_date == "2024-05-02"
        assert output.similar_tasks == []


class TestLangChainSuggestionProvider:
    """Test the structured-output calls against a mocked chat model."""

    @pytest.fixture
    def mock_llm(self):
        llm = MagicMock()
        llm.with_structured_output.return_value.ainvoke = AsyncMock()
        return llm

    @pytest.mark.asyncio
    async def test_categorize_task(self, mock_llm):
        expected = CategorizeTaskOutput(category="Shopping", similar_tasks=["Buy bread"])
        mock_llm.with_structured_output.return_value.ainvoke.return_value = expected
        provider = LangChainSuggestionProvider(mock_llm, clock=FakeClock())

        result = await provider.categorize_task("Buy milk")

        assert result == expected
        mock_llm.with_structured_output.assert_called_once_with(CategorizeTaskOutput)
        prompt_value = mock_llm.with_structured_output.return_value.ainvoke.call_args.args[0]
        assert isinstance(prompt_value, ChatPromptValue)
        rendered = prompt_value.to_string()
        assert "Buy milk" in rendered
        assert "2024-05-01" in rendered

    @pytest.mark.asyncio
    async def test_dict_output_is_validated(self, mock_llm):
        mock_llm.with_structured_output.return_value.ainvoke.return_value = {
            "suggested_tasks": ["Buy bread"],
            "category": "Shopping",
            "optimal_due_date": "2024-05-03",
        }
        provider = LangChainSuggestionProvider(mock_llm, clock=FakeClock())

        result = await provider.suggest_tasks("Buy milk")

        assert isinstance(result, TaskSuggestionsOutput)
        assert result.optimal_due_date == "2024-05-03"

    @pytest.mark.asyncio
    async def test_malformed_output_falls_back(self, mock_llm, clock):
        mock_llm.with_structured_output.return_value.ainvoke.return_value = {
            "suggested_due_date": "whenever",
            "reasoning": "No idea",
        }
        provider = LangChainSuggestionProvider(mock_llm, clock=clock)
        service = SuggestionService(provider, clock=clock)

        result = await service.get_optimal_due_date("Write report", "Took 3 days last time")

        assert result.reasoning == "Fell back to default due to error."
        rendered = mock_llm.with_structured_output.return_value.ainvoke.call_args.args[0].to_string()
        assert "Took 3 days last time" in rendered

    def test_build_from_settings(self, test_settings):
        settings = test_settings.model_copy(update={"openai_api_key": "test-api-key"})

        with patch("taskzen.services.suggestion_service.ChatOpenAI") as mock_chat:
            service = build_suggestion_service(settings)

        assert service.enabled is True
        assert isinstance(service.provider, LangChainSuggestionProvider)
        mock_chat.assert_called_once_with(
            model=settings.model_name,
            api_key="test-api-key",
            temperature=settings.temperature,
            timeout=settings.suggestion_timeout_seconds,
        )

    def test_build_without_key(self, test_settings):
        assert build_suggestion_service(test_settings).enabled is False


class TestSuggestionRoutes:
    """Test suggestion API routes."""

    def test_suggest_tasks(self, client):
        response = client.post("/suggestions/tasks", json={"description": "Plan the team offsite"})

        assert response.status_code == 200
        data = response.json()
        assert data["category"] == "Events"
        assert data["suggested_tasks"] == ["Book venue", "Send invites"]

    def test_suggest_category(self, client):
        response = client.post("/suggestions/category", json={"description": "Buy milk"})

        assert response.status_code == 200
        assert response.json()["category"] == "Shopping"

    def test_suggest_due_date_default_history(self, client, fake_provider):
        response = client.post("/suggestions/due-date", json={"description": "Write report"})

        assert response.status_code == 200
        assert response.json()["suggested_due_date"] == "2024-05-08"
        assert fake_provider.calls[-1] == ("suggest_due_date", "Write report", DEFAULT_HISTORICAL_DATA)

    def test_suggest_due_date_with_history(self, client, fake_provider):
        payload = {"description": "Write report", "historical_data": "Reports took 2 days"}

        client.post("/suggestions/due-date", json=payload)

        assert fake_provider.calls[-1] == ("suggest_due_date", "Write report", "Reports took 2 days")

    def test_suggest_due_date_empty_history_is_kept(self, client, fake_provider):
        payload = {"description": "Write report", "historical_data": ""}

        client.post("/suggestions/due-date", json=payload)

        assert fake_provider.calls[-1] == ("suggest_due_date", "Write report", "")

    def test_provider_failure_is_not_an_error(self, test_settings):
        app = create_app(settings=test_settings, suggestion_provider=FakeSuggestionProvider(error=TimeoutError()))

        with TestClient(app) as client:
            response = client.post("/suggestions/category", json={"description": "Buy milk"})

        assert response.status_code == 200
        assert response.json() == {"category": "Uncategorized", "suggested_due_date": None}

    def test_missing_description(self, client):
        response = client.post("/suggestions/tasks", json={})

        assert response.status_code == 422
