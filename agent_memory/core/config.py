"""Configuration management for the agent memory service."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Anthropic configuration (optional: oracle-backed flows degrade without it)
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API key")

    # Environment
    AGENT_MEMORY_ENV: str = Field(default="dev", description="Environment: dev, staging, prod, test")

    # Completion oracle
    SUMMARY_MODEL: str = Field(
        default="claude-sonnet-4-20250514", description="Model for memory summarization"
    )
    SUMMARY_MAX_TOKENS: int = Field(default=1000, description="Max output tokens for summaries")
    SUGGESTION_MODEL: str = Field(
        default="claude-sonnet-4-20250514", description="Model for suggestion synthesis"
    )
    SUGGESTION_MAX_TOKENS: int = Field(
        default=2000, description="Max output tokens for suggestion synthesis"
    )
    LLM_TIMEOUT_SECONDS: float = Field(
        default=30.0, description="Deadline for a single completion call"
    )

    # Suggestions
    SUGGESTION_DEDUPE_WINDOW_DAYS: int = Field(
        default=7, description="Skip suggestions already raised within this many days (0 disables)"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
