"""FastAPI main application with app factory and route configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .deps import get_settings
from .routes import suggestions, tasks
from .schemas import HealthResponse
from .services.suggestion_service import SuggestionProvider, SuggestionService, build_suggestion_service
from .services.task_service import TaskService, demo_tasks
from .utils.logging import configure_request_logging, log_shutdown_info, log_startup_info, setup_logging

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events.

    Builds the services the routes depend on and keeps them on ``app.state``.

    Args:
        app: FastAPI application instance
    """
    settings: Settings = app.state.settings

    setup_logging(settings)
    log_startup_info(settings)

    try:
        initial_tasks = demo_tasks() if settings.seed_demo_tasks else None
        app.state.task_service = TaskService(initial_tasks=initial_tasks)
        logger.info("Task service initialized")

        provider: Optional[SuggestionProvider] = app.state.suggestion_provider
        if provider is not None:
            app.state.suggestion_service = SuggestionService(
                provider, timeout_seconds=settings.suggestion_timeout_seconds
            )
        else:
            app.state.suggestion_service = build_suggestion_service(settings)
        logger.info("Suggestion service initialized")

        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Error during application startup: {str(e)}")
        raise

    yield

    log_shutdown_info()


def create_app(
    settings: Optional[Settings] = None,
    suggestion_provider: Optional[SuggestionProvider] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment
        suggestion_provider: Provider to use instead of one built from settings

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="TaskZen",
        description="Personal task manager with filtering, sorting and AI-assisted suggestions",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.suggestion_provider = suggestion_provider

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(configure_request_logging())

    # Custom exception handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with proper logging."""
        logger.warning(
            f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url.path}"
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.detail,
                "status_code": exc.status_code,
                "path": request.url.path,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle request validation errors with detailed information."""
        logger.warning(
            f"Validation error for {request.method} {request.url.path}: {exc.errors()}"
        )

        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation error",
                "details": jsonable_encoder(exc.errors()),
                "status_code": 422,
                "path": request.url.path,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            f"Unexpected error for {request.method} {request.url.path}: {str(exc)}",
            exc_info=True,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "status_code": 500,
                "path": request.url.path,
            },
        )

    @app.get("/healthz", tags=["health"], response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        """Health check endpoint for monitoring and load balancers."""
        task_service: TaskService = request.app.state.task_service
        suggestion_service: SuggestionService = request.app.state.suggestion_service

        return HealthResponse(
            version=VERSION,
            environment=settings.environment,
            task_count=task_service.get_task_count(),
            suggestions_enabled=suggestion_service.enabled,
        )

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "TaskZen API",
            "version": VERSION,
            "docs_url": "/docs",
            "health_check": "/healthz",
            "endpoints": {
                "tasks": "/tasks",
                "suggestions": "/suggestions",
            },
        }

    app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
    app.include_router(suggestions.router, prefix="/suggestions", tags=["suggestions"])

    logger.info("FastAPI application created and configured")

    return app


def run() -> None:
    """Serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "taskzen.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
    )


# Create the app instance
app = create_app()


if __name__ == "__main__":
    run()
