"""Dependency injection helpers for FastAPI."""

import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from .config import Settings
from .services.suggestion_service import SuggestionService
from .services.task_service import TaskService


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """Get the settings the running application was built with."""
    return request.app.state.settings


def get_task_service(request: Request) -> TaskService:
    """Get the task service owned by the running application."""
    return request.app.state.task_service


def get_suggestion_service(request: Request) -> SuggestionService:
    """Get the suggestion service owned by the running application."""
    return request.app.state.suggestion_service


def require_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Reject the request unless it carries the configured API key.

    Does nothing when no key is configured.
    """
    if not settings.api_key:
        return
    if x_api_key is None or not secrets.compare_digest(x_api_key, settings.api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
