"""Shared test fixtures and configuration for the test suite."""

from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from taskzen.config import Settings
from taskzen.main import create_app
from taskzen.services.task_service import TaskService

from fakes import FakeClock, FakeSuggestionProvider


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings isolated from the environment."""
    return Settings(
        _env_file=None,
        openai_api_key=None,
        api_key=None,
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        log_to_file=False,
        environment="test",
        seed_demo_tasks=False,
        suggestion_timeout_seconds=1.0,
    )


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at FIXED_NOW until advanced."""
    return FakeClock()


@pytest.fixture
def task_service() -> TaskService:
    """Create a task service instance for testing."""
    return TaskService()


@pytest.fixture
def clocked_task_service(clock: FakeClock) -> TaskService:
    """Task service driven by the fake clock."""
    return TaskService(clock=clock)


@pytest.fixture
def fake_provider() -> FakeSuggestionProvider:
    return FakeSuggestionProvider()


@pytest.fixture
def client(test_settings, fake_provider) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    app = create_app(settings=test_settings, suggestion_provider=fake_provider)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {
        "title": "Test Task",
        "description": "This is a test task description",
        "priority": "high",
        "due_date": "2024-05-03T09:00:00Z",
        "category": "Work",
    }
