"""Configuration settings using Pydantic BaseSettings."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI Configuration
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key for task suggestions")
    model_name: str = Field(default="gpt-4o-mini", description="OpenAI model name for suggestions")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Sampling temperature for suggestions")
    suggestion_timeout_seconds: float = Field(default=20.0, gt=0, description="Timeout for a single suggestion call")

    # Access Configuration
    api_key: Optional[str] = Field(default=None, description="Shared key required in X-API-Key for write routes")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Application Configuration
    app_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_port: int = Field(default=8000, description="FastAPI port")
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(default="development", description="Deployment environment name")
    seed_demo_tasks: bool = Field(default=True, description="Pre-load the demo tasks at startup")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(default=Path("logs"), description="Directory for rotating log files")
    log_to_file: bool = Field(default=True, description="Write app.log and error.log under log_dir")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
